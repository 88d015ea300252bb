"""
Tests for the command line interface.
"""

import json
import sys

from credshare import Credential, decode_token, recover_address
from credshare.cli import main

from conftest import OWNER_KEY


def run_cli(monkeypatch, *argv) -> int:
    monkeypatch.setattr(sys, "argv", ["credshare", *argv])
    return main()


class TestShareCommand:
    """credshare share"""

    def test_share_prints_url(self, monkeypatch, capsys, owner_signer):
        code = run_cli(monkeypatch, "share", "1", "--key", OWNER_KEY, "--base-url", "https://app.example/")

        assert code == 0
        url = capsys.readouterr().out.strip()
        assert url.startswith("https://app.example/#/verify/access?data=")

        share = decode_token(url.split("?data=", 1)[1])
        assert share.payload.credential_id == "1"
        assert share.payload.max_views == 1
        assert recover_address(share.payload.canonical_bytes(), share.signature) == owner_signer.address

    def test_share_json(self, monkeypatch, capsys, owner_signer):
        code = run_cli(monkeypatch, "share", "2", "--max-views", "4", "--key", OWNER_KEY, "--json")

        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["owner"] == owner_signer.address
        assert data["payload"]["maxViews"] == 4
        assert data["url"].endswith(data["token"])

    def test_share_key_from_env(self, monkeypatch, capsys):
        monkeypatch.setenv("CREDSHARE_PRIVATE_KEY", OWNER_KEY)

        code = run_cli(monkeypatch, "share", "1", "--token-only")

        assert code == 0
        assert decode_token(capsys.readouterr().out.strip()).payload.credential_id == "1"

    def test_share_missing_key(self, monkeypatch, capsys):
        monkeypatch.delenv("CREDSHARE_PRIVATE_KEY", raising=False)

        code = run_cli(monkeypatch, "share", "1")

        assert code == 1
        assert "Missing private key" in capsys.readouterr().err

    def test_share_invalid_max_views(self, monkeypatch, capsys):
        code = run_cli(monkeypatch, "share", "1", "--key", OWNER_KEY, "--max-views", "0")

        assert code == 1
        assert "Error" in capsys.readouterr().err


class TestInspectCommand:
    """credshare inspect"""

    def test_inspect_valid(self, monkeypatch, capsys, owner_signer):
        run_cli(monkeypatch, "share", "1", "--key", OWNER_KEY, "--token-only")
        token = capsys.readouterr().out.strip()

        code = run_cli(monkeypatch, "inspect", token)

        assert code == 0
        out = capsys.readouterr().out
        assert "SIGNATURE VALID" in out
        assert owner_signer.address in out

    def test_inspect_json(self, monkeypatch, capsys, owner_signer):
        run_cli(monkeypatch, "share", "1", "--key", OWNER_KEY, "--token-only")
        token = capsys.readouterr().out.strip()

        code = run_cli(monkeypatch, "inspect", token, "--json")

        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["valid"] is True
        assert data["owner"] == owner_signer.address

    def test_inspect_garbage(self, monkeypatch, capsys):
        code = run_cli(monkeypatch, "inspect", "!!!garbage!!!")

        assert code == 1
        assert "INVALID (decode_error)" in capsys.readouterr().out


class TestInitCommand:
    """credshare init"""

    def test_init_env(self, monkeypatch, capsys):
        code = run_cli(monkeypatch, "init", "--env")

        assert code == 0
        captured = capsys.readouterr()
        assert captured.out.startswith("export CREDSHARE_PRIVATE_KEY='0x")
        assert "# Address: 0x" in captured.err

    def test_init(self, monkeypatch, capsys):
        code = run_cli(monkeypatch, "init")

        assert code == 0
        assert "NEW IDENTITY GENERATED" in capsys.readouterr().out


class TestListCommand:
    """credshare list"""

    @staticmethod
    def write_db(path, credentials):
        document = {"credentials": [c.to_dict() for c in credentials]}
        path.write_text(json.dumps(document), encoding="utf-8")

    def test_list_all(self, monkeypatch, capsys, tmp_path, sample_credentials):
        db = tmp_path / "db.json"
        self.write_db(db, sample_credentials)

        code = run_cli(monkeypatch, "list", "--db", str(db))

        assert code == 0
        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 3
        assert "Advanced Python (MIT OpenCourseWare)" in lines[0]
        assert "Active" in lines[0]
        assert "Expired" in lines[1]
        assert "Revoked" in lines[2]

    def test_list_shortens_owner(self, monkeypatch, capsys, tmp_path, owner_signer):
        db = tmp_path / "db.json"
        self.write_db(db, [Credential(id="1", student_address=owner_signer.address)])

        run_cli(monkeypatch, "list", "--db", str(db))

        out = capsys.readouterr().out
        short = f"{owner_signer.address[:6]}...{owner_signer.address[-4:]}"
        assert short in out
        assert owner_signer.address not in out

    def test_list_by_owner_json(self, monkeypatch, capsys, tmp_path, sample_credentials, owner_signer):
        db = tmp_path / "db.json"
        self.write_db(db, sample_credentials)

        code = run_cli(monkeypatch, "list", "--db", str(db), "--owner", owner_signer.address, "--json")

        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert [c["id"] for c in data] == ["1", "2"]
        assert data[0]["status"] == "Active"
        assert data[1]["status"] == "Expired"

    def test_list_empty(self, monkeypatch, capsys, tmp_path):
        code = run_cli(monkeypatch, "list", "--db", str(tmp_path / "new.json"))

        assert code == 0
        assert "No credentials indexed." in capsys.readouterr().out

    def test_list_corrupt_store(self, monkeypatch, capsys, tmp_path):
        db = tmp_path / "db.json"
        db.write_text("{not json", encoding="utf-8")

        code = run_cli(monkeypatch, "list", "--db", str(db))

        assert code == 1
        assert "Cannot read" in capsys.readouterr().err
