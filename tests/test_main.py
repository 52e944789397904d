import orjson
import pytest

from main import build_arg_parser, config_from_args, main


def test_missing_catalog_exits_non_zero(tmp_path):
    assert main(["--catalog", str(tmp_path / "nope.json"), "--images-dir", str(tmp_path / "img")]) == 1


def test_invalid_catalog_exits_non_zero(tmp_path):
    catalog = tmp_path / "deals.json"
    catalog.write_text("{oops", encoding="utf-8")
    assert main(["--catalog", str(catalog), "--images-dir", str(tmp_path / "img")]) == 1


def test_nothing_to_do_exits_zero_and_leaves_catalog_alone(tmp_path):
    catalog = tmp_path / "deals.json"
    content = orjson.dumps([{"id": "a", "url": "https://example.com/a", "image": "/images/a.webp"}])
    catalog.write_bytes(content)

    assert main(["--catalog", str(catalog), "--images-dir", str(tmp_path / "img"), "-q"]) == 0
    assert catalog.read_bytes() == content
    assert (tmp_path / "img").is_dir()


def test_args_map_onto_config(tmp_path):
    args = build_arg_parser().parse_args([
        "--catalog", str(tmp_path / "d.json"),
        "--images-dir", str(tmp_path / "i"),
        "--url-prefix", "/img",
        "--delay", "0",
        "--limit", "5",
        "--dry-run",
        "--strict-images",
    ])
    config = config_from_args(args)
    assert config.catalog_path == tmp_path / "d.json"
    assert config.public_path("z") == "/img/z.webp"
    assert config.delay == 0
    assert config.limit == 5
    assert config.dry_run
    assert config.require_valid_image


def test_negative_delay_is_rejected(tmp_path):
    with pytest.raises(SystemExit):
        main(["--catalog", str(tmp_path / "d.json"), "--delay", "-1"])
