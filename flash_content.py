# flash_content.py - 카테고리 인덱스/문장 데이터 로딩 + 캐시
from __future__ import annotations
import os, json, random, logging
from dataclasses import dataclass, field, replace
from pathlib import Path

import requests

log = logging.getLogger(__name__)

BASE     = Path(__file__).parent.resolve()
DATA_DIR = os.environ.get("FLASH_DATA") or str(BASE / "data")
INDEX_FILE = "categories.json"
HTTP_TIMEOUT = 10

RANDOM_LABEL = ("랜덤 모드", "🔀")
ALL_LABEL    = ("전체 학습", "📚")


class FlashError(Exception):
    """Base class for errors surfaced to the user."""


class ContentLoadFailure(FlashError):
    """Fetching or parsing the index or a category document failed."""


class CategoryNotFound(FlashError, LookupError):
    def __init__(self, category_id: str):
        super().__init__(f"category not found: {category_id}")
        self.category_id = category_id


@dataclass(frozen=True, slots=True)
class Category:
    id: str
    name: str
    emoji: str = ""
    file: str = ""
    count: int = 0

    @classmethod
    def from_dict(cls, d: dict) -> "Category":
        return cls(id=str(d["id"]), name=str(d.get("name") or d["id"]),
                   emoji=str(d.get("emoji") or ""), file=str(d.get("file") or ""),
                   count=int(d.get("count") or 0))

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "emoji": self.emoji,
                "file": self.file, "count": self.count}


@dataclass(frozen=True, slots=True)
class Sentence:
    korean: str
    english: str
    category_name: str | None = None
    category_emoji: str | None = None

    def to_dict(self) -> dict:
        d = {"korean": self.korean, "english": self.english}
        if self.category_name is not None:
            d["categoryName"] = self.category_name
            d["categoryEmoji"] = self.category_emoji or ""
        return d


@dataclass(slots=True)
class CategoryData:
    category: dict
    sentences: list[Sentence] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"category": dict(self.category),
                "sentences": [s.to_dict() for s in self.sentences]}


def _parse_sentences(rows) -> list[Sentence]:
    if not isinstance(rows, list):
        raise ValueError("'sentences' must be a list")
    return [Sentence(korean=str(r["korean"]), english=str(r["english"])) for r in rows]


class ContentStore:
    """
    Reads content documents from a directory or an http(s) base URL.

      <base>/categories.json   {"categories": [{id, name, emoji, file, count}, ...]}
      <base>/<category.file>   {"category": {...}, "sentences": [{korean, english}, ...]}
    """

    def __init__(self, base: str | os.PathLike | None = None, session: requests.Session | None = None):
        self.base = str(base if base is not None else DATA_DIR)
        self.remote = self.base.startswith(("http://", "https://"))
        self._http = session or (requests.Session() if self.remote else None)

    def _read(self, name: str):
        try:
            if self.remote:
                url = self.base.rstrip("/") + "/" + name
                r = self._http.get(url, timeout=HTTP_TIMEOUT)
                r.raise_for_status()
                return r.json()
            with open(Path(self.base) / name, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError, requests.RequestException) as e:
            raise ContentLoadFailure(f"failed to load {name}: {e}") from e

    def fetch_index(self) -> list[Category]:
        data = self._read(INDEX_FILE)
        try:
            return [Category.from_dict(c) for c in data["categories"]]
        except (KeyError, TypeError, ValueError) as e:
            raise ContentLoadFailure(f"malformed {INDEX_FILE}: {e}") from e

    def fetch_category(self, category: Category) -> CategoryData:
        if not category.file:
            raise ContentLoadFailure(f"category {category.id} has no file")
        data = self._read(category.file)
        try:
            info = data.get("category") or category.to_dict()
            return CategoryData(category=dict(info), sentences=_parse_sentences(data["sentences"]))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ContentLoadFailure(f"malformed {category.file}: {e}") from e


class CategoryCache:
    """
    category id -> CategoryData. Filled on first get(), kept until clear().
    Concurrent gets of the same id are not deduplicated.
    """

    def __init__(self, store: ContentStore):
        self.store = store
        self.categories: list[Category] = []
        self._cache: dict[str, CategoryData] = {}

    def load_categories(self) -> list[Category]:
        try:
            self.categories = self.store.fetch_index()
        except ContentLoadFailure:
            log.error("category index load failed (%s)", self.store.base)
            raise
        log.info("categories loaded: %d", len(self.categories))
        return self.categories

    def find(self, category_id: str) -> Category:
        for c in self.categories:
            if c.id == category_id:
                return c
        raise CategoryNotFound(category_id)

    def get(self, category_id: str) -> CategoryData:
        hit = self._cache.get(category_id)
        if hit is not None:
            log.info("cache hit: %s", category_id)
            return hit
        category = self.find(category_id)
        try:
            data = self.store.fetch_category(category)
        except ContentLoadFailure:
            log.error("category data load failed: %s", category_id)
            raise
        self._cache[category_id] = data
        log.info("category loaded: %s (%d sentences)", category_id, len(data.sentences))
        return data

    def __contains__(self, category_id) -> bool:
        return category_id in self._cache

    def clear(self):
        self._cache.clear()
        log.info("cache cleared")

    def info(self) -> dict:
        return {"size": len(self._cache), "categories": list(self._cache.keys())}

    def load_all(self) -> list[Sentence]:
        """All categories in index order, tagged with their category; failing ones are skipped."""
        out: list[Sentence] = []
        for c in self.categories:
            try:
                data = self.get(c.id)
            except FlashError as e:
                log.warning("skipping category %s: %s", c.id, e)
                continue
            out.extend(replace(s, category_name=c.name, category_emoji=c.emoji) for s in data.sentences)
        log.info("all categories loaded: %d sentences", len(out))
        return out


# --------- 덱 구성 ---------
def shuffle_sentences(seq, rng: random.Random | None = None) -> list:
    """Fisher–Yates on a copy: i from the end down to 1, partner j uniform in [0, i]."""
    rng = rng or random.Random()
    out = list(seq)
    for i in range(len(out) - 1, 0, -1):
        j = rng.randint(0, i)
        out[i], out[j] = out[j], out[i]
    return out


def _label(name_emoji, n: int, cid: str) -> Category:
    name, emoji = name_emoji
    return Category(id=cid, name=name, emoji=emoji, count=n)


def category_deck(cache: CategoryCache, category_id: str) -> tuple[Category, list[Sentence]]:
    data = cache.get(category_id)
    info = data.category or {}
    known = cache.find(category_id)
    label = Category(id=category_id, name=str(info.get("name") or known.name),
                     emoji=str(info.get("emoji") or known.emoji), file=known.file,
                     count=len(data.sentences))
    return label, list(data.sentences)


def all_deck(cache: CategoryCache) -> tuple[Category, list[Sentence]]:
    rows = cache.load_all()
    return _label(ALL_LABEL, len(rows), "all"), rows


def random_deck(cache: CategoryCache, seed=None) -> tuple[Category, list[Sentence]]:
    rows = shuffle_sentences(cache.load_all(), random.Random(seed))
    return _label(RANDOM_LABEL, len(rows), "random"), rows


def make_deck(cache: CategoryCache, mode: str, category_id: str | None = None, seed=None):
    if mode == "category":
        if not category_id:
            raise CategoryNotFound(str(category_id))
        return category_deck(cache, category_id)
    if mode == "all":
        return all_deck(cache)
    if mode == "random":
        return random_deck(cache, seed)
    raise ValueError(f"unknown mode: {mode}")
