import json

from run_normalize import main


def test_session_command_prints_normalized_session(tmp_path, capsys) -> None:
    path = tmp_path / "session.json"
    path.write_text(json.dumps({
        "session": {"workplace_id": 5, "workplace_session_id": 9},
        "assignments": [{"workplace_id": 5, "workplace_session_id": 9, "workplace_position_id": 7}],
    }))

    assert main(["session", str(path)]) == 0

    out = json.loads(capsys.readouterr().out)
    assert out["workplace_position_id"] == 7
    assert out["workplace_position_map"] == {"5": {"positionId": 7, "positionName": None}}


def test_posapi_command_prints_defaults(tmp_path, capsys) -> None:
    path = tmp_path / "endpoint.json"
    path.write_text(json.dumps({"requestFieldMappings": {"totalAmount": "total"}}))

    assert main(["posapi", str(path)]) == 0

    out = json.loads(capsys.readouterr().out)
    assert out == {"totalAmount": {"type": "column", "table": "", "column": "total"}}


def test_bad_arguments(tmp_path) -> None:
    assert main([]) == 2
    assert main(["session", str(tmp_path / "missing.json")]) == 1
