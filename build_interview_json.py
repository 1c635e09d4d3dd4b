# build_interview_json.py
# 면접 문장 데이터 생성기: 소스 파일 1개 = 카테고리 1개
# - .txt/.tsv: "english<TAB>korean" 줄, 또는 영어 줄 다음에 한국어 줄
# - .pdf: pdfminer로 텍스트 추출 후 같은 규칙으로 페어링
# - "# name: ..." / "# emoji: ..." 헤더로 표시 정보 지정
import re, json, argparse, logging
from pathlib import Path

from pdfminer.high_level import extract_text

from flash_content import INDEX_FILE

log = logging.getLogger(__name__)

HANGUL = re.compile(r'[가-힣]')
LATIN  = re.compile(r'[A-Za-z]')
HEADER = re.compile(r'^#\s*(name|emoji)\s*:\s*(.*)$', re.I)
SEP    = re.compile(r'\s[-–:]\s|\s·\s|\s—\s|\s•\s')

def norm(s:str)->str:
    return re.sub(r'\s+', ' ', (s or '').strip())

def slug(s:str)->str:
    return re.sub(r'[^a-z0-9_-]+', '-', s.lower()).strip('-') or "category"

def parse_pairs(lines):
    """(meta, [(en, ko), ...]) from raw lines."""
    meta = {}; pairs = []
    rows = [l.rstrip('\n') for l in lines]
    j = 0
    while j < len(rows):
        raw = rows[j]; ln = norm(raw)
        j += 1
        if not ln:
            continue
        m = HEADER.match(ln)
        if m:
            meta[m.group(1).lower()] = m.group(2).strip(); continue
        if ln.startswith('#'):
            continue
        if '\t' in raw:
            en, ko = (norm(x) for x in raw.split('\t', 1))
            if en and ko: pairs.append((en, ko))
            continue
        if not LATIN.search(ln):
            continue
        # 같은 줄 구분자(-, :, ·, —, •)
        if HANGUL.search(ln):
            parts = SEP.split(ln, maxsplit=1)
            if len(parts) == 2 and HANGUL.search(parts[1]):
                pairs.append((parts[0].strip(), parts[1].strip()))
            continue
        # 영어 줄 다음에 한국어 줄
        if j < len(rows) and HANGUL.search(rows[j]):
            pairs.append((ln, norm(rows[j]))); j += 1
    return meta, pairs

def read_source(path: Path):
    if path.suffix.lower() == ".pdf":
        text = extract_text(str(path))
    else:
        text = path.read_text(encoding="utf-8")
    return parse_pairs(text.splitlines())

def save_json(path: Path, obj):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, ensure_ascii=False, indent=2), encoding="utf-8")

def build(sources, out: Path):
    """Write one <id>.json per source plus categories.json; returns the index rows."""
    out = Path(out); index = []; seen = set()
    for src in map(Path, sources):
        meta, pairs = read_source(src)
        if not pairs:
            log.warning("no sentence pairs in %s, skipped", src)
            continue
        cid = slug(src.stem)
        if cid in seen:
            raise ValueError(f"duplicate category id: {cid}")
        seen.add(cid)
        info = {"id": cid, "name": meta.get("name") or src.stem, "emoji": meta.get("emoji") or "📝"}
        fname = f"{cid}.json"
        save_json(out / fname, {"category": info,
                                "sentences": [{"korean": ko, "english": en} for en, ko in pairs]})
        index.append({**info, "file": fname, "count": len(pairs)})
        print(f"[{cid}] {len(pairs)} sentences")
    save_json(out / INDEX_FILE, {"categories": index})
    return index

def main(argv=None):
    ap = argparse.ArgumentParser(description="Build interview sentence JSON from text/PDF sources")
    ap.add_argument("sources", nargs="+", help=".txt/.tsv/.pdf files, one category each")
    ap.add_argument("--out", default="./data", help="output directory (default ./data)")
    args = ap.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    index = build(args.sources, Path(args.out))
    print(f"OK: {len(index)} categories → {args.out}")

if __name__ == "__main__":
    main()
