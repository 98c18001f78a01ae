from __future__ import annotations

import json
import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path

from Cryptodome.PublicKey import RSA

from test_support import PLUGIN_JSON, FixtureEntry, build_obby, icon_bytes


def _entries():
    return [
        FixtureEntry("plugin.json", PLUGIN_JSON),
        FixtureEntry("assets/icon.png", icon_bytes(1024), compress=True),
        FixtureEntry("main.js", b"module.exports = {};\n" * 20, compress=True),
    ]


class CLIIntegrationTests(unittest.TestCase):
    def run_cli(self, args, *, expect: int | None = 0, cwd: Path | None = None):
        cmd = [sys.executable, "-m", "obby.cli"] + list(args)
        env = os.environ.copy()
        repo_root = Path(__file__).resolve().parent
        existing = env.get("PYTHONPATH", "")
        env["PYTHONPATH"] = str(repo_root) if not existing else f"{repo_root}{os.pathsep}{existing}"
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            env=env,
        )
        if expect is not None and proc.returncode != expect:
            raise AssertionError(
                f"CLI exited {proc.returncode}, expected {expect}\nCommand: {' '.join(cmd)}\nSTDOUT:\n{proc.stdout}\nSTDERR:\n{proc.stderr}"
            )
        return proc

    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = Path(tmp.name)
        self.archive = self.root / "plugin.obby"
        self.archive.write_bytes(build_obby(_entries(), assembly="Demo.dll", version="2.0.1"))

    def test_list(self):
        proc = self.run_cli(["list", str(self.archive)])
        self.assertEqual(proc.stdout.splitlines(), ["plugin.json", "assets/icon.png", "main.js"])
        proc = self.run_cli(["list", "-l", str(self.archive)])
        self.assertIn("deflate", proc.stdout)
        self.assertIn("stored", proc.stdout)

    def test_info_json(self):
        proc = self.run_cli(["info", "--json", str(self.archive)])
        info = json.loads(proc.stdout)
        self.assertEqual(info["plugin_assembly"], "Demo.dll")
        self.assertEqual(info["plugin_version"], "2.0.1")
        self.assertEqual(info["entries"], 3)
        self.assertFalse(info["signed"])
        proc = self.run_cli(["info", str(self.archive)])
        self.assertIn("Demo.dll 2.0.1", proc.stdout)

    def test_manifest(self):
        proc = self.run_cli(["manifest", str(self.archive)])
        self.assertEqual(proc.stdout, PLUGIN_JSON.decode("utf-8") + "\n")

    def test_extract_all_and_exists_policy(self):
        out = self.root / "out"
        self.run_cli(["extract", str(self.archive), "--outdir", str(out), "--quiet"])
        self.assertEqual((out / "plugin.json").read_bytes(), PLUGIN_JSON)
        self.assertEqual((out / "assets" / "icon.png").read_bytes(), icon_bytes(1024))
        self.assertEqual((out / "main.js").read_bytes(), b"module.exports = {};\n" * 20)

        proc = self.run_cli(["extract", str(self.archive), "--outdir", str(out)], expect=2)
        self.assertIn("Destination exists", proc.stderr)
        proc = self.run_cli(["extract", str(self.archive), "--outdir", str(out), "--exists", "skip"])
        self.assertIn("skip  plugin.json", proc.stdout)
        self.run_cli(["extract", str(self.archive), "--outdir", str(out), "--exists", "overwrite"])

    def test_extract_selected(self):
        out = self.root / "sel"
        self.run_cli(["extract", str(self.archive), "main.js", "--outdir", str(out)])
        self.assertTrue((out / "main.js").exists())
        self.assertFalse((out / "plugin.json").exists())

    def test_extract_missing_entry(self):
        proc = self.run_cli(["extract", str(self.archive), "nope.txt", "--outdir", str(self.root / "x")], expect=2)
        self.assertIn("nope.txt", proc.stderr)

    def test_extract_reports_bad_entry(self):
        bad = self.root / "bad.obby"
        bad.write_bytes(
            build_obby(
                [
                    FixtureEntry("ok.txt", b"fine"),
                    FixtureEntry("broken.bin", b"", raw_size=100, payload=b"\xff" * 10),
                ]
            )
        )
        out = self.root / "bad_out"
        proc = self.run_cli(["extract", str(bad), "--outdir", str(out)], expect=1)
        self.assertIn("broken.bin", proc.stderr)
        self.assertEqual((out / "ok.txt").read_bytes(), b"fine")
        self.assertFalse((out / "broken.bin").exists())

    def test_size_warning_on_stderr(self):
        liar = self.root / "liar.obby"
        liar.write_bytes(build_obby([FixtureEntry("x.bin", icon_bytes(600), compress=True, raw_size=700)]))
        proc = self.run_cli(["extract", str(liar), "--outdir", str(self.root / "liar_out")])
        self.assertIn("Warning:", proc.stderr)
        self.assertIn("x.bin", proc.stderr)

    def test_verify(self):
        proc = self.run_cli(["verify", str(self.archive)])
        self.assertIn("Verification: OK", proc.stdout)

        data = bytearray(self.archive.read_bytes())
        data[-1] ^= 0xFF
        tampered = self.root / "tampered.obby"
        tampered.write_bytes(bytes(data))
        proc = self.run_cli(["verify", str(tampered)], expect=1)
        self.assertIn("hash      MISMATCH", proc.stdout)

    def test_verify_reports_bad_entry(self):
        bad = self.root / "bad_verify.obby"
        bad.write_bytes(
            build_obby([FixtureEntry("ok.txt", b"fine"), FixtureEntry("broken.bin", b"", raw_size=100, payload=b"\xff" * 10)])
        )
        proc = self.run_cli(["verify", str(bad)], expect=1)
        self.assertIn("hash      OK", proc.stdout)
        self.assertIn("entry     FAIL", proc.stdout)
        self.assertIn("broken.bin", proc.stdout)
        self.assertIn("Verification: FAILED", proc.stdout)

    def test_verify_signature(self):
        key = RSA.generate(3072)
        signed = self.root / "signed.obby"
        signed.write_bytes(build_obby(_entries(), private_key=key))
        pem = self.root / "pub.pem"
        pem.write_bytes(key.publickey().export_key("PEM"))
        proc = self.run_cli(["verify", str(signed), "--public-key", str(pem)])
        self.assertIn("signature OK", proc.stdout)
        proc = self.run_cli(["verify", str(signed)])
        self.assertIn("signature present", proc.stdout)

    def test_not_an_archive(self):
        junk = self.root / "junk.obby"
        junk.write_bytes(b"PK\x03\x04 definitely a zip")
        proc = self.run_cli(["list", str(junk)], expect=2)
        self.assertIn("not a valid .obby archive", proc.stderr)

    def test_missing_file(self):
        self.run_cli(["list", str(self.root / "absent.obby")], expect=2)


if __name__ == "__main__":
    unittest.main()
