import json

import pytest

import build_interview_json as builder
from flash_content import ContentStore, CategoryCache


def test_parse_pairs_formats():
    lines = [
        "# name: 자기소개",
        "# emoji: 🙋",
        "# comment line",
        "I'm a developer.\t저는 개발자입니다.",
        "",
        "Nice to meet you.",
        "만나서 반갑습니다.",
        "I need more time. - 시간이 더 필요해요.",
        "한국어만 있는 줄",
        "Orphan English line",
    ]
    meta, pairs = builder.parse_pairs(lines)
    assert meta == {"name": "자기소개", "emoji": "🙋"}
    assert pairs == [
        ("I'm a developer.", "저는 개발자입니다."),
        ("Nice to meet you.", "만나서 반갑습니다."),
        ("I need more time.", "시간이 더 필요해요."),
    ]


def test_build_writes_loadable_content(tmp_path):
    src = tmp_path / "Self Intro.txt"
    src.write_text("# name: 자기소개\nHello.\t안녕하세요.\nThank you.\t감사합니다.\n", encoding="utf-8")
    empty = tmp_path / "empty.tsv"
    empty.write_text("# name: 빈 파일\n", encoding="utf-8")
    out = tmp_path / "data"

    index = builder.build([src, empty], out)
    assert index == [{"id": "self-intro", "name": "자기소개", "emoji": "📝",
                      "file": "self-intro.json", "count": 2}]

    cache = CategoryCache(ContentStore(out))
    cache.load_categories()
    data = cache.get("self-intro")
    assert data.category["name"] == "자기소개"
    assert [s.korean for s in data.sentences] == ["안녕하세요.", "감사합니다."]


def test_duplicate_ids_rejected(tmp_path):
    a = tmp_path / "a"; a.mkdir()
    b = tmp_path / "b"; b.mkdir()
    for d in (a, b):
        (d / "work.txt").write_text("Go.\t가.\n", encoding="utf-8")
    with pytest.raises(ValueError):
        builder.build([a / "work.txt", b / "work.txt"], tmp_path / "out")


def test_cli(tmp_path, capsys):
    src = tmp_path / "team.txt"
    src.write_text("Let's sync up.\t맞춰 봅시다.\n", encoding="utf-8")
    builder.main([str(src), "--out", str(tmp_path / "d")])
    assert "OK: 1 categories" in capsys.readouterr().out
    assert json.loads((tmp_path / "d" / "categories.json").read_text(encoding="utf-8"))["categories"][0]["id"] == "team"
