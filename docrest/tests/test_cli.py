import json

from docrest.cli.main import build_parser, main


def _write(tmp_path, name, data):
    p = tmp_path / name
    p.write_text(json.dumps(data), encoding="utf-8")
    return str(p)


def _definition(tmp_path):
    return _write(
        tmp_path,
        "user.json",
        {
            "name": "User",
            "collection_name": "users",
            "schema": {
                "_id": "id",
                "name": "string",
                "age": "uinteger",
                "password": "string",
                "tags": ["string"],
            },
            "defaults": {"age": 0},
            "read_only_attributes": ["_id"],
            "hidden_attributes": ["password"],
        },
    )


def test_parser_collects_repeated_excludes():
    parser = build_parser()
    args = parser.parse_args(["build", "--schema", "s.json", "--exclude", "a", "--exclude", "b.c"])
    assert args.cmd == "build"
    assert args.exclude == ["a", "b.c"]


def test_check_schema_prints_summary(tmp_path, capsys):
    rc = main(["check-schema", _definition(tmp_path)])
    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    assert out["ok"] is True
    assert out["name"] == "User"
    assert out["collection_name"] == "users"
    assert out["field_count"] == 5
    assert out["max_depth"] == 2
    assert out["fields"]["tags"] == "array<string>"
    assert out["read_only"] == ["_id"]
    assert out["hidden"] == ["password"]


def test_check_schema_reports_bad_schema(tmp_path, capsys):
    p = _write(tmp_path, "bad.json", {"name": "Bad", "schema": {"a": 5}})
    rc = main(["check-schema", p])
    assert rc == 2
    assert "error:" in capsys.readouterr().err


def test_max_depth_flag_is_applied(tmp_path, capsys):
    rc = main(["--max-depth", "1", "check-schema", _definition(tmp_path)])
    assert rc == 2
    assert "max depth 1" in capsys.readouterr().err


def test_ingest_applies_body_and_shows_changes(tmp_path, capsys):
    definition = _definition(tmp_path)
    attrs = _write(tmp_path, "attrs.json", {"_id": "u1", "name": "old", "age": 4, "tags": ["a"]})
    body = _write(tmp_path, "body.json", {"_id": "evil", "name": "new", "tags": []})

    rc = main(["ingest", definition, "--body", body, "--attrs", attrs, "--show-changes"])
    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    assert out["attributes"] == {
        "_id": "u1",
        "name": "new",
        "age": 4,
        "password": None,
        "tags": ["a"],
    }
    assert out["changed"] == {"name": "new", "password": None}


def test_render_hides_attributes(tmp_path, capsys):
    definition = _definition(tmp_path)
    doc = _write(tmp_path, "doc.json", [{"_id": "u1", "name": "n", "password": "x", "extra": 1}])

    rc = main(["render", definition, "--attrs", doc])
    assert rc == 0
    assert json.loads(capsys.readouterr().out) == {
        "_id": "u1",
        "name": "n",
        "age": 0,
        "tags": [],
    }


def test_build_with_excludes(tmp_path, capsys):
    schema = _write(tmp_path, "schema.json", {"n": "integer", "p": {"a": "string", "b": "string"}})
    payload = _write(tmp_path, "json.json", {"n": "12px", "p": {"a": "x", "b": "y"}})
    defaults = _write(tmp_path, "defaults.json", {"n": 1})

    rc = main(
        [
            "build",
            "--schema",
            schema,
            "--json",
            payload,
            "--defaults",
            defaults,
            "--exclude",
            "p.b",
        ]
    )
    assert rc == 0
    assert json.loads(capsys.readouterr().out) == {"n": 12, "p": {"a": "x"}}


def test_missing_input_file_exits_2(tmp_path, capsys):
    rc = main(["build", "--schema", str(tmp_path / "nope.json")])
    assert rc == 2
    assert "error:" in capsys.readouterr().err


def test_zero_max_depth_is_rejected(tmp_path, capsys):
    rc = main(["--max-depth", "0", "check-schema", _definition(tmp_path)])
    assert rc == 2
    assert "max_depth must be >= 1" in capsys.readouterr().err
