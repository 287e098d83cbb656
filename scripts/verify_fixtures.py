"""Verify that every reference fixture decodes and round-trips.

Walks a fixture tree (default: the fixtures bundled in fitstore/resources)
and, for every file whose suffix names a wire format, checks:
1. The file decodes under its format
2. decode(encode(model)) equals the decoded model
3. All full-fidelity variants of the same logical resource (Atom, JSON full
   and minimal metadata) decode to equal models

Exit code 0 = all fixtures valid; 1 = error.
"""

from __future__ import annotations

import argparse
import sys
from collections import defaultdict
from importlib import resources
from pathlib import Path

from fitstore.codec import CodecError, FormatKind, decode, encode
from fitstore.config import FitStoreConfig
from fitstore.logging_config import setup_logging

# Variants that carry ids, type names and every value type
FULL_FIDELITY_FORMATS: frozenset[FormatKind] = frozenset(
    {
        FormatKind.ATOM,
        FormatKind.JSON_FULL_METADATA,
        FormatKind.JSON_MINIMAL_METADATA,
    }
)


def _logical_name(path: Path, kind: FormatKind) -> str:
    return str(path)[: -len(kind.suffix)]


def verify_file(path: Path, kind: FormatKind) -> tuple[object | None, list[str]]:
    """Decode one fixture and check its round trip. Returns (model, errors)."""
    try:
        model = decode(path.read_bytes(), kind)
    except CodecError as exc:
        return None, [f"{path}: does not decode as {kind.value}: {exc}"]

    try:
        again = decode(encode(model, kind), kind)
    except CodecError as exc:
        return model, [f"{path}: round trip failed: {exc}"]

    if again != model:
        return model, [f"{path}: round trip changed the model"]
    return model, []


def verify_tree(root: Path) -> tuple[int, list[str]]:
    """Verify every fixture under root. Returns (files checked, errors)."""
    errors: list[str] = []
    checked = 0
    variants: dict[str, dict[FormatKind, object]] = defaultdict(dict)

    for path in sorted(p for p in root.rglob("*") if p.is_file()):
        kind = FormatKind.from_path(path.name)
        if kind is None:
            continue
        checked += 1
        model, errs = verify_file(path, kind)
        errors.extend(errs)
        if model is not None and not errs:
            print(f"  OK {path.relative_to(root)} ({kind.value})")
            if kind in FULL_FIDELITY_FORMATS:
                variants[_logical_name(path, kind)][kind] = model

    for name, by_kind in sorted(variants.items()):
        models = list(by_kind.values())
        if any(m != models[0] for m in models[1:]):
            kinds = ", ".join(sorted(k.value for k in by_kind))
            errors.append(f"{name}: variants decode to different models ({kinds})")

    return checked, errors


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Fixture tree to verify (default: FITSTORE_RESOURCE_ROOT, else bundled resources)",
    )
    args = parser.parse_args(argv)

    config = FitStoreConfig.from_env()
    setup_logging(level=config.log_level, json_format=config.json_logs)

    root: Path = (
        args.root
        or config.resource_root
        or Path(str(resources.files("fitstore") / "resources"))
    )
    if not root.is_dir():
        print(f"ERROR: {root} is not a directory")
        return 1

    print(f"=== {root} ===")
    checked, errors = verify_tree(root)

    print()
    if not checked:
        print("ERROR: No fixtures found")
        return 1
    if errors:
        print(f"FAILED: {len(errors)} error(s):")
        for e in errors:
            print(f"  - {e}")
        return 1

    print(f"PASSED: {checked} fixture(s) verified.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
