from __future__ import annotations
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from ..config import Settings
from ..events import Category
from ..store.base import EventStore
from ..store.factory import build_store


def snapshot_frames(store: EventStore) -> Dict[Category, pd.DataFrame]:
    frames = {}
    for category in Category:
        rows = [r.to_wire() for r in store.read_all(category)]
        if rows:
            frames[category] = pd.DataFrame(rows)
    return frames


def export(store: EventStore, outdir: Path, stamp: Optional[str] = None) -> Dict[Category, Path]:
    outdir.mkdir(parents=True, exist_ok=True)
    stamp = stamp or datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
    written = {}
    for category, df in snapshot_frames(store).items():
        # free-form dicts don't map onto a parquet schema
        if "metadata" in df.columns:
            df["metadata"] = df["metadata"].map(lambda m: None if m is None or m != m else str(m))
        path = outdir / f"{category.value}_{stamp}.parquet"
        df.to_parquet(path, engine="pyarrow", index=False)
        written[category] = path
        print(f"[export] wrote {len(df)} {category.value} rows → {path}")
    return written


def main():
    settings = Settings.from_env()
    store = build_store(settings)
    try:
        written = export(store, settings.export_dir)
    finally:
        store.close()
    if not written:
        print("[export] store empty, nothing to write.")


if __name__ == "__main__":
    main()
