import json

import pytest

from ldproc import cli

DOC = {
    "@context": {"name": "http://schema.org/name"},
    "@id": "http://ex/ada",
    "name": "Ada",
}


@pytest.fixture
def write_json(tmp_path):
    def write(name, data):
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding='utf-8')
        return str(path)
    return write


def run(capsys, *argv):
    status = cli.main(*argv)
    out, err = capsys.readouterr()
    return status, out, err


class TestCli:
    def test_expand(self, capsys, write_json):
        status, out, _ = run(capsys, 'expand', '-q', write_json('doc', DOC))
        assert status == 0
        assert json.loads(out) == [{
            "@id": "http://ex/ada",
            "http://schema.org/name": [{"@value": "Ada"}]}]

    def test_compact(self, capsys, write_json):
        ctx = {"@context": {"n": "http://schema.org/name"}}
        status, out, _ = run(
            capsys, 'compact', '-q', write_json('doc', DOC),
            write_json('ctx', ctx))
        assert status == 0
        assert json.loads(out) == {
            "@context": {"n": "http://schema.org/name"},
            "@id": "http://ex/ada",
            "n": "Ada",
        }

    def test_flatten(self, capsys, write_json):
        status, out, _ = run(capsys, 'flatten', '-q', write_json('doc', DOC))
        assert status == 0
        assert json.loads(out)[0]["@id"] == "http://ex/ada"

    def test_frame(self, capsys, write_json):
        frame = {"@context": {"name": "http://schema.org/name"},
                 "@id": "http://ex/ada"}
        status, out, _ = run(
            capsys, 'frame', '-q', write_json('doc', DOC),
            write_json('frame', frame))
        assert status == 0
        assert json.loads(out)["name"] == "Ada"

    def test_tordf_and_fromrdf(self, capsys, write_json, tmp_path):
        status, out, _ = run(capsys, 'tordf', '-q', write_json('doc', DOC))
        assert status == 0
        assert out == (
            '<http://ex/ada> <http://schema.org/name> "Ada" .\n')

        nquads = tmp_path / 'data.nq'
        nquads.write_text(out, encoding='utf-8')
        status, out, _ = run(capsys, 'fromrdf', '-q', str(nquads))
        assert status == 0
        assert json.loads(out) == [{
            "@id": "http://ex/ada",
            "http://schema.org/name": [{"@value": "Ada"}]}]

    def test_base(self, capsys, write_json):
        doc = {"@id": "ada", "http://schema.org/name": "Ada"}
        status, out, _ = run(
            capsys, 'expand', '-q', '--base', 'http://ex/',
            write_json('doc', doc))
        assert status == 0
        assert json.loads(out)[0]["@id"] == "http://ex/ada"

    def test_error_exit_status(self, capsys, write_json):
        status, out, err = run(
            capsys, 'expand', '-q', write_json('doc', {"@id": 5}))
        assert status == 1
        assert out == ''
        assert 'invalid @id value' in err

    def test_unreadable_input(self, capsys, tmp_path):
        path = tmp_path / 'broken.jsonld'
        path.write_text('{not json', encoding='utf-8')
        status, _, err = run(capsys, 'expand', '-q', str(path))
        assert status == 1
        assert err.startswith('ldproc: ')
