from __future__ import annotations

import os
import sys
import argparse
import json as _json
import warnings

from typing import List, Optional

from obby.reader import ObbyArchive, open_path, describe
from obby.pathutil import output_path
from obby.errors import (
    ObbyError,
    FormatError,
    NotFound,
    DecodeError,
    EncodingError,
    SignatureError,
)


def _fmt_size(n: int) -> str:
    for unit in ("B", "KiB", "MiB"):
        if n < 1024 or unit == "MiB":
            return f"{n} {unit}" if unit == "B" else f"{n:.1f} {unit}"
        n /= 1024.0
    return f"{n:.1f} MiB"


def cmd_list(archive: str, *, long: bool = False) -> bool:
    """Print entry names in archive order.

    Args:
        archive: Path to an .obby file.
        long: Also print stored/raw sizes and the storage method.
    """
    r = open_path(archive)
    for e in r.index:
        if long:
            method = "deflate" if e.compressed else "stored"
            print(f"{e.raw_size:>10d} {e.stored_size:>10d} {method:7s} {e.name}")
        else:
            print(e.name)
    return True


def cmd_info(archive: str, *, as_json: bool = False) -> bool:
    """Show header information.

    Args:
        archive: Path to an .obby file.
        as_json: Emit a JSON object instead of text.
    """
    r = open_path(archive)
    info = describe(r)
    if as_json:
        print(_json.dumps(info))
        return True
    print(f"Archive: {archive}")
    print(f"  API version: {info['api_version']}")
    print(f"  Plugin: {info['plugin_assembly']} {info['plugin_version']}")
    print(f"  Hash: {info['hash']}")
    print(f"  Signed: {'yes' if info['signed'] else 'no'}")
    print(f"  Entries: {info['entries']}")
    print(f"    Stored: {_fmt_size(info['stored_bytes'])}")
    print(f"    Raw: {_fmt_size(info['raw_bytes'])}")
    return True


def cmd_manifest(archive: str) -> bool:
    r = open_path(archive)
    sys.stdout.write(r.extract_plugin_json())
    sys.stdout.write("\n")
    return True


def cmd_extract(
    archive: str,
    *,
    outdir: str = ".",
    names: Optional[List[str]] = None,
    exists: str = "fail",
    quiet: bool = False,
) -> bool:
    """Extract entries to ``outdir``.

    Entries that fail to decode are reported and skipped; the rest are still
    written.

    Args:
        archive: Path to an .obby file.
        outdir: Destination directory.
        names: Entry names to extract; all entries when empty.
        exists: What to do when a destination file exists: overwrite, skip or fail.
        quiet: Only print the summary line.

    Returns:
        True when every selected entry was written or skipped on purpose.
    """
    r = open_path(archive)
    selected = [r.entry(n) for n in names] if names else list(r.index)
    written = 0
    failed = 0
    for e in selected:
        dest = output_path(outdir, e.name)
        if os.path.exists(dest):
            if exists == "skip":
                if not quiet:
                    print(f"skip  {e.name}")
                continue
            if exists == "fail":
                raise FileExistsError(f"Destination exists: {dest}")
        try:
            data = r.extract_entry(e.name)
        except DecodeError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            failed += 1
            continue
        os.makedirs(os.path.dirname(dest) or ".", exist_ok=True)
        with open(dest, "wb") as wf:
            wf.write(data)
        written += 1
        if not quiet:
            print(f"wrote {e.name} ({len(data)} bytes)")
    print(f"Extracted {written} of {len(selected)} entries to {outdir}")
    return failed == 0


def cmd_verify(archive: str, *, public_key: Optional[str] = None) -> bool:
    """Verify hash, entry payloads and, when a key is given, the signature.

    Args:
        archive: Path to an .obby file.
        public_key: Path to an RSA public key (PEM or DER).

    Returns:
        True if all checks pass, False otherwise.
    """
    r: ObbyArchive = open_path(archive)
    ok = r.verify_hash()
    print(f"hash      {'OK' if ok else 'MISMATCH'}")
    for _e, exc in r.check_entries():
        print(f"entry     FAIL {exc}")
        ok = False
    if public_key:
        with open(public_key, "rb") as fh:
            key = fh.read()
        good = r.verify_signature(key)
        print(f"signature {'OK' if good else 'BAD'}")
        ok = ok and good
    elif r.header.is_signed:
        print("signature present (not checked; pass --public-key)")
    else:
        print("signature none")
    print("Verification: " + ("OK" if ok else "FAILED"))
    return ok


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="obby",
        description="Inspect and extract .obby plugin archives",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_list = sub.add_parser("list", help="List archive entries")
    ap_list.add_argument("archive", help="Archive path")
    ap_list.add_argument("-l", "--long", action="store_true", help="Show sizes and storage method")

    ap_info = sub.add_parser("info", help="Show archive information")
    ap_info.add_argument("archive", help="Archive path")
    ap_info.add_argument("--json", action="store_true", help="Emit JSON")

    ap_manifest = sub.add_parser("manifest", help="Print plugin.json")
    ap_manifest.add_argument("archive", help="Archive path")

    ap_extract = sub.add_parser("extract", help="Extract entries")
    ap_extract.add_argument("archive", help="Archive path")
    ap_extract.add_argument("names", nargs="*", help="Entry names to extract (default: all)")
    ap_extract.add_argument("--outdir", default=".", help="Output directory")
    ap_extract.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")
    ap_extract.add_argument(
        "--exists",
        choices=["overwrite", "skip", "fail"],
        default="fail",
        help="What to do if a destination file exists (default: fail)",
    )

    ap_verify = sub.add_parser("verify", help="Verify archive integrity")
    ap_verify.add_argument("archive", help="Archive path")
    ap_verify.add_argument("--public-key", help="RSA public key (PEM/DER) to check the signature")

    args = ap.parse_args(argv)
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            if args.cmd == "list":
                ok = cmd_list(args.archive, long=args.long)
            elif args.cmd == "info":
                ok = cmd_info(args.archive, as_json=args.json)
            elif args.cmd == "manifest":
                ok = cmd_manifest(args.archive)
            elif args.cmd == "extract":
                ok = cmd_extract(
                    args.archive, outdir=args.outdir, names=args.names, exists=args.exists, quiet=args.quiet
                )
            elif args.cmd == "verify":
                ok = cmd_verify(args.archive, public_key=args.public_key)
            else:
                raise RuntimeError("Unknown command")
        except (FileNotFoundError, FileExistsError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(2)
        except FormatError as e:
            print(f"Error: not a valid .obby archive: {e}", file=sys.stderr)
            sys.exit(2)
        except (NotFound, DecodeError, EncodingError, SignatureError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(2)
        except (ObbyError, OSError, ValueError, RuntimeError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(2)
        finally:
            for w in caught:
                print(f"Warning: {w.message}", file=sys.stderr)
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
