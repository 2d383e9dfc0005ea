from __future__ import annotations

import argparse
import os
import sys
from typing import List, Optional

from catdat import pck
from catdat.catalog import Catalog
from catdat.constants import DECODED_SUFFIX, PCK_EXT
from catdat.directory import Directory
from catdat.errors import CatalogNotFoundError, CatDatError, PckError


def _open_catalog(path: str) -> Catalog:
    cat = Catalog()
    if not cat.parse(path):
        raise CatalogNotFoundError(f"Could not read .cat file {path}: {cat.last_error}")
    return cat


def _report(obj) -> None:
    err = getattr(obj, "last_error", None)
    if err is not None:
        print(f"Error: {err}", file=sys.stderr)


def cmd_dump_index(catalog: str) -> bool:
    """Print the index of a catalog.

    Args:
        catalog: Path to the .cat file.
    """
    cat = _open_catalog(catalog)
    print(cat.get_index_listing())
    return True


def cmd_decode_file(catalog: str, *, output: Optional[str] = None) -> bool:
    """Write the decoded index text of a catalog.

    Args:
        catalog: Path to the .cat file.
        output: Destination file. Defaults to ``<catalog>.decoded``.
    """
    cat = _open_catalog(catalog)
    out = output or catalog + DECODED_SUFFIX
    if not cat.decrypt_to_file(out):
        _report(cat)
        return False
    print(f"Decoded {catalog} to {out}")
    return True


def cmd_extract_file(
    catalog: str,
    name: str,
    *,
    output: Optional[str] = None,
    strict: bool = True,
    auto_unpack: bool = False,
) -> bool:
    """Extract a single member of a catalog.

    Args:
        catalog: Path to the .cat file.
        name: Archive path of the member (or just its filename when not strict).
        output: Destination file. Defaults to ``name`` relative to the cwd.
        strict: Match the full archive path instead of the filename only.
        auto_unpack: Gunzip .pck payloads on the way out.
    """
    cat = _open_catalog(catalog)
    out = output or name
    if not cat.extract_one(name, out, strict_match=strict, auto_unpack=auto_unpack):
        _report(cat)
        return False
    print(f"   extracted: {name} -> {cat.last_output}")
    return True


def cmd_extract_archive(catalog: str, *, outdir: Optional[str] = None, auto_unpack: bool = False) -> bool:
    """Extract every member of one catalog.

    Args:
        catalog: Path to the .cat file.
        outdir: Output directory. Defaults to the current directory.
        auto_unpack: Gunzip .pck payloads on the way out.
    """
    cat = _open_catalog(catalog)
    if not cat.extract_all(outdir or ".", auto_unpack=auto_unpack):
        _report(cat)
        return False
    print(f"Done: {len(cat)} files from {catalog}")
    return True


def cmd_extract_all(indir: str, outdir: str, *, auto_unpack: bool = False) -> bool:
    """Extract a whole directory of catalogs, higher ids overriding lower ones.

    Args:
        indir: Directory holding the numbered .cat/.dat pairs.
        outdir: Output directory (created when missing).
        auto_unpack: Gunzip .pck payloads on the way out.
    """
    if not indir or not outdir:
        raise ValueError("extract-all needs both an input directory and an output path")
    dd = Directory(indir)
    if not dd.extract(outdir, auto_unpack=auto_unpack):
        _report(dd)
        return False
    print(f"Done: {len(dd)} catalogs from {indir} (ids {', '.join(str(i) for i in dd.ids())})")
    return True


def cmd_build_package(catalog: str, indir: str) -> bool:
    """Build a new .cat/.dat pair from a directory.

    Args:
        catalog: Path of the .cat file to create; the .dat goes next to it.
        indir: Directory whose files are packed.
    """
    if not catalog:
        raise ValueError("You must specify a filename for the new .cat file")
    cat = Catalog()
    if not cat.build(indir, catalog):
        _report(cat)
        return False
    print(f"Built {catalog} ({len(cat)} files) with data in {cat.data_path}")
    return True


def cmd_search(indir: str, name: str, *, strict: bool = False) -> bool:
    """Report which catalog in a directory holds the winning copy of a file.

    Not finding the file is still a successful search.

    Args:
        indir: Directory holding the numbered .cat/.dat pairs.
        name: Archive path or filename to look for.
        strict: Match the full archive path instead of the filename only.
    """
    dd = Directory(indir)
    found = dd.search(name, strict_match=strict)
    if found is not None:
        print(f"The file {name} is most recently found in {found.index_path}")
    else:
        print(f"The file {name} was not found in any catalog in {indir}")
    return True


def cmd_pack_file(src: str, *, output: Optional[str] = None) -> bool:
    """Gzip a loose file into .pck form.

    Args:
        src: File to compress.
        output: Destination. Defaults to ``<src stem>.pck``.
    """
    with open(src, "rb") as f:
        data = f.read()
    out = output or os.path.splitext(src)[0] + PCK_EXT
    with open(out, "wb") as f:
        f.write(pck.pack(data))
    print(f"Packed {src} -> {out}")
    return True


def cmd_unpack_file(src: str, *, output: Optional[str] = None) -> bool:
    """Gunzip a .pck file, naming the output after its detected content type.

    Args:
        src: Compressed file.
        output: Destination. Defaults to ``<src stem>`` plus the detected extension.
    """
    with open(src, "rb") as f:
        data = f.read()
    raw = pck.unpack(data)
    out = output or os.path.splitext(src)[0] + pck.detect_extension(raw)
    with open(out, "wb") as f:
        f.write(raw)
    print(f"Unpacked {src} -> {out}")
    return True


def _add_pack_opts(p: argparse.ArgumentParser) -> None:
    p.add_argument("--auto-unpack", action="store_true", help="Gunzip .pck members and fix their extension")


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="catdat",
        description="Numbered .cat/.dat archive tool",
        epilog="Catalogs in one directory are layered by id: the highest id wins, 0 is the fallback.",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_dump = sub.add_parser("dump-index", aliases=["t", "dump_index"], help="Print the index of a catalog")
    ap_dump.add_argument("catalog", help="Catalog (.cat) path")

    ap_decode = sub.add_parser("decode-file", aliases=["d", "decode_file"], help="Write the decoded index text")
    ap_decode.add_argument("catalog", help="Catalog (.cat) path")
    ap_decode.add_argument("-o", "--output-path", dest="output", help="Output file (default: <catalog>.decoded)")

    ap_file = sub.add_parser("extract-file", aliases=["f", "extract_file"], help="Extract a single file")
    ap_file.add_argument("catalog", help="Catalog (.cat) path")
    ap_file.add_argument("-f", "--package-file", dest="name", required=True, help="File inside the archive")
    ap_file.add_argument("-o", "--output-path", dest="output", help="Output file (default: the archive path)")
    ap_file.add_argument("--loose", action="store_true", help="Match by filename only")
    _add_pack_opts(ap_file)

    ap_arch = sub.add_parser("extract-archive", aliases=["x", "extract_archive"], help="Extract one whole archive")
    ap_arch.add_argument("catalog", help="Catalog (.cat) path")
    ap_arch.add_argument("-o", "--output-path", dest="outdir", default=".", help="Output directory (default: .)")
    _add_pack_opts(ap_arch)

    ap_all = sub.add_parser(
        "extract-all",
        aliases=["a", "extract_all"],
        help="Extract every catalog in a directory, higher ids overriding lower ones",
    )
    ap_all.add_argument("-i", "--input-file", dest="indir", required=True, help="Directory of catalogs")
    ap_all.add_argument("-o", "--output-path", dest="outdir", required=True, help="Output directory")
    _add_pack_opts(ap_all)

    ap_build = sub.add_parser("build-package", aliases=["p", "c", "build_package"], help="Build a new catalog")
    ap_build.add_argument("catalog", nargs="?", help="New catalog (.cat) path")
    ap_build.add_argument("-i", "--input-file", dest="indir", required=True, help="Directory to pack")
    ap_build.add_argument("-o", "--output-path", dest="output", help="Alternative way to name the new catalog")

    ap_search = sub.add_parser("search", aliases=["s"], help="Find the catalog holding the winning copy of a file")
    ap_search.add_argument("-f", "--package-file", dest="name", required=True, help="File to look for")
    ap_search.add_argument("-i", "--input-file", dest="indir", required=True, help="Directory of catalogs")
    ap_search.add_argument("--strict", action="store_true", help="Match the full archive path")

    ap_pack = sub.add_parser("pack-file", help="Gzip a file into .pck form")
    ap_pack.add_argument("src", help="File to compress")
    ap_pack.add_argument("-o", "--output-path", dest="output", help="Output file")

    ap_unpack = sub.add_parser("unpack-file", help="Gunzip a .pck file")
    ap_unpack.add_argument("src", help="File to decompress")
    ap_unpack.add_argument("-o", "--output-path", dest="output", help="Output file")

    args = ap.parse_args(argv)
    cmd = {
        "t": "dump-index", "dump_index": "dump-index",
        "d": "decode-file", "decode_file": "decode-file",
        "f": "extract-file", "extract_file": "extract-file",
        "x": "extract-archive", "extract_archive": "extract-archive",
        "a": "extract-all", "extract_all": "extract-all",
        "p": "build-package", "c": "build-package", "build_package": "build-package",
        "s": "search",
    }.get(args.cmd, args.cmd)
    try:
        if cmd == "dump-index":
            ok = cmd_dump_index(args.catalog)
        elif cmd == "decode-file":
            ok = cmd_decode_file(args.catalog, output=args.output)
        elif cmd == "extract-file":
            ok = cmd_extract_file(
                args.catalog, args.name, output=args.output, strict=not args.loose, auto_unpack=args.auto_unpack
            )
        elif cmd == "extract-archive":
            ok = cmd_extract_archive(args.catalog, outdir=args.outdir, auto_unpack=args.auto_unpack)
        elif cmd == "extract-all":
            ok = cmd_extract_all(args.indir, args.outdir, auto_unpack=args.auto_unpack)
        elif cmd == "build-package":
            # The new catalog may be given positionally or through -o
            ok = cmd_build_package(args.catalog or args.output, args.indir)
        elif cmd == "search":
            ok = cmd_search(args.indir, args.name, strict=args.strict)
        elif cmd == "pack-file":
            ok = cmd_pack_file(args.src, output=args.output)
        elif cmd == "unpack-file":
            ok = cmd_unpack_file(args.src, output=args.output)
        else:
            raise RuntimeError("Unknown command")
    except PckError as e:
        print(f"Error: not a usable .pck file: {e}", file=sys.stderr)
        sys.exit(2)
    except (CatDatError, OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    if not ok:
        print("Operation did not complete successfully!", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
