"""
End-to-end tests for the decode_messages command line.
"""

import json
import sys
from pathlib import Path

import pytest
import yaml

# Add tools to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'tools'))

from decode_messages import main

pytestmark = pytest.mark.integration

DEFINITIONS = """\
# id;name;fields
1;Login;user:string;ok:bool
2;Reading;sensor:int;value:double;at:ts
2;Shadowed;x:int
9;Broken;x:nosuchtype
"""

MESSAGES = """\
# id,payload...
1,alice,1
2,17,21.5,1700000000
99,nobody,0
1
2,3
"""


@pytest.fixture
def inputs(write_file):
    return (
        str(write_file('defs.schema', DEFINITIONS)),
        str(write_file('messages.txt', MESSAGES)),
    )


class TestCommandLine:
    """Tests for main()."""

    def test_decodes_matching_lines(self, inputs, capsys):
        assert main(list(inputs)) == 0

        out = capsys.readouterr().out.splitlines()
        assert out == [
            'alice,true',
            '17,21.5,parsed_ts=1700000000',
        ]

    def test_json_output(self, inputs, capsys):
        assert main([*inputs, '--json']) == 0

        records = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
        assert records[0] == {'id': 1, 'name': 'Login',
                              'fields': {'user': 'alice', 'ok': True}, 'line': 2}
        assert records[1]['fields'] == {'sensor': 17, 'value': 21.5, 'at': 1700000000}

    def test_warnings_go_to_stderr(self, inputs, capsys):
        main(list(inputs))
        err = capsys.readouterr().err
        assert 'message id 2 already defined' in err
        assert "unknown field type 'nosuchtype'" in err
        assert 'type_id=99' in err

    def test_stats(self, inputs, capsys):
        main([*inputs, '--stats'])
        err = capsys.readouterr().err
        assert 'decoded: 2' in err
        assert 'skipped: 3' in err

    def test_verbose(self, inputs, capsys):
        main([*inputs, '-v'])
        assert '[INFO] total patterns parsed num=2' in capsys.readouterr().err

    def test_dump_catalog(self, inputs, capsys):
        assert main([inputs[0], '--dump-catalog']) == 0

        dumped = yaml.safe_load(capsys.readouterr().out)
        assert [m['name'] for m in dumped['messages']] == ['Login', 'Reading']

    def test_json_non_finite_doubles(self, write_file, capsys):
        schema = write_file('defs.schema', "2;Reading;lo:double;hi:double;bad:double\n")
        messages = write_file('messages.txt', "2,-inf,inf,nan\n")

        assert main([str(schema), str(messages), '--json']) == 0

        line = capsys.readouterr().out.strip()
        record = json.loads(line, parse_constant=lambda name: pytest.fail(f"non-JSON constant {name}"))
        assert record['fields'] == {'lo': '-inf', 'hi': 'inf', 'bad': 'nan'}

    def test_yaml_definitions(self, write_file, inputs, capsys):
        schema = write_file('defs.yaml', yaml.safe_dump({
            'messages': [{'id': 1, 'name': 'Login', 'fields': [
                {'name': 'user', 'type': 'string'},
                {'name': 'ok', 'type': 'bool'},
            ]}]
        }))
        assert main([str(schema), inputs[1]]) == 0
        assert capsys.readouterr().out.splitlines() == ['alice,true']


class TestExitStatus:
    """Fatal conditions give a nonzero exit status."""

    def test_missing_schema(self, tmp_path, inputs, capsys):
        assert main([str(tmp_path / 'missing.schema'), inputs[1]]) == 1
        assert 'Error loading message definitions' in capsys.readouterr().err

    def test_missing_messages(self, tmp_path, inputs, capsys):
        assert main([inputs[0], str(tmp_path / 'missing.txt')]) == 1
        captured = capsys.readouterr()
        assert captured.out == ''
        assert 'Error loading messages' in captured.err

    def test_schema_without_usable_definitions(self, write_file, inputs, capsys):
        schema = write_file('empty.schema', "# nothing here\n1;OnlyName\n")
        assert main([str(schema), inputs[1]]) == 1
        assert 'no usable message definition' in capsys.readouterr().err

    def test_messages_argument_required(self, inputs):
        with pytest.raises(SystemExit) as exc:
            main([inputs[0]])
        assert exc.value.code == 2
