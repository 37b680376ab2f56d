"""
Test CLI commands end to end.

These tests run the installed `sigil` entry point (or `python -m
sigil_zk.cli`) against repository records written to a temporary directory.
"""
import dataclasses
import json
import shutil
import subprocess
import sys
from datetime import datetime, timedelta, timezone

import pytest

from sigil_zk.circuits.types import Proof


def get_cli_command():
    """Get the CLI command to run."""
    cli_path = shutil.which("sigil")
    if cli_path:
        return [cli_path]
    return [sys.executable, "-m", "sigil_zk.cli"]


def run_cli(*args, timeout=120, check=False):
    cmd = get_cli_command() + [str(a) for a in args]
    return subprocess.run(cmd, capture_output=True, text=True, timeout=timeout, check=check)


def _commit(author, i, filename):
    ts = datetime(2024, 1, 1, 9, tzinfo=timezone.utc) + timedelta(days=i)
    return {
        "sha": f"{author}{i:038x}",
        "author": author,
        "message": "implement parser stage",
        "timestamp": ts.isoformat(),
        "files": [{"filename": filename, "additions": 40, "deletions": 10}],
    }


@pytest.fixture
def repository(tmp_path):
    commits = [_commit("alice", i, "src/parser.py") for i in range(12)]
    commits += [_commit("bob", i, "src/lexer.py") for i in range(6)]
    data = {
        "name": "octo/widgets",
        "owner": "octo",
        "user": "alice",
        "description": "parser toolkit",
        "languages": {"Python": 7200},
        "commits": commits,
        "collaborators": [
            {"login": "alice", "contributions": 12},
            {"login": "bob", "contributions": 6},
            {"login": "carol", "contributions": 2},
        ],
    }
    path = tmp_path / "repo.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def key_file(tmp_path):
    path = tmp_path / "alice.key"
    path.write_text("11" * 32, encoding="utf-8")
    return path


def _prove(repository, key_file, output, commits=(10, 20), collaborator_capacity=4):
    return run_cli(
        "prove", repository,
        "--key", key_file,
        "--commits", *commits,
        "--loc", 500, 1000,
        "--collaborators", 1, 5,
        "--commit-capacity", 16,
        "--collaborator-capacity", collaborator_capacity,
        "--timestamp", 1700000000,
        "--output", output,
    )


def test_cli_version():
    result = run_cli("version")
    assert result.returncode == 0
    assert "sigil-zk v" in result.stdout


def test_cli_help():
    result = run_cli("--help")
    assert result.returncode == 0
    for command in ("analyze", "prove", "verify", "privacy-check"):
        assert command in result.stdout


def test_cli_analyze_json(repository):
    result = run_cli("analyze", repository, "--format", "json", "--as-of", "2024-03-01T00:00:00+00:00", "--seed", 1)
    assert result.returncode == 0, result.stderr
    summary = json.loads(result.stdout)
    assert summary["metrics"]["total_commits"] == 18
    assert summary["languages"][0]["language"] == "Python"
    assert len(summary["repository_id"]) == 64


def test_cli_analyze_table(repository):
    result = run_cli("analyze", repository, "--as-of", "2024-03-01")
    assert result.returncode == 0, result.stderr
    assert "Languages" in result.stdout


def test_cli_analyze_bad_record(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text(json.dumps({"name": "octo/widgets"}), encoding="utf-8")
    result = run_cli("analyze", path)
    assert result.returncode != 0
    assert "Cannot read repository record" in result.stderr


def test_cli_prove_then_verify(repository, key_file, tmp_path):
    proof_file = tmp_path / "proof.cbor"
    result = _prove(repository, key_file, proof_file)
    assert result.returncode == 0, result.stderr
    assert "✓ Proof written" in result.stdout
    assert proof_file.exists()

    result = run_cli("verify", proof_file, "--circuit-id", "repository_credential_v1@16x5x4")
    assert result.returncode == 0, result.stderr
    assert "✓ Proof verifies" in result.stdout


def test_cli_verify_rejects_wrong_circuit(repository, key_file, tmp_path):
    proof_file = tmp_path / "proof.cbor"
    assert _prove(repository, key_file, proof_file).returncode == 0
    result = run_cli("verify", proof_file, "--circuit-id", "repository_credential_v1@256x5x4")
    assert result.returncode == 1
    assert "does not verify" in result.stderr


def test_cli_verify_rejects_tampered_proof(repository, key_file, tmp_path):
    proof_file = tmp_path / "proof.cbor"
    assert _prove(repository, key_file, proof_file).returncode == 0
    proof = Proof.deserialize(proof_file.read_bytes())
    tampered = dataclasses.replace(proof, credential_hash=proof.credential_hash ^ 1)
    proof_file.write_bytes(tampered.serialize())

    result = run_cli("verify", proof_file)
    assert result.returncode == 1


def test_cli_verify_malformed_file(tmp_path):
    proof_file = tmp_path / "proof.cbor"
    proof_file.write_bytes(b"not a proof")
    result = run_cli("verify", proof_file)
    assert result.returncode == 1
    assert "Malformed proof" in result.stderr


def test_cli_prove_claim_outside_range(repository, key_file, tmp_path):
    proof_file = tmp_path / "proof.cbor"
    result = _prove(repository, key_file, proof_file, commits=(50, 100))
    assert result.returncode == 1
    assert "Claim does not hold" in result.stderr
    assert not proof_file.exists()


def test_cli_prove_too_many_collaborators(repository, key_file, tmp_path):
    proof_file = tmp_path / "proof.cbor"
    result = _prove(repository, key_file, proof_file, collaborator_capacity=1)
    assert result.returncode == 1
    assert "✗ Error" in result.stderr
    assert "exceed fixed capacity 1" in result.stderr
    assert "Traceback" not in result.stderr
    assert not proof_file.exists()


def test_cli_analyze_too_many_collaborators(repository):
    result = run_cli("analyze", repository, "--collaborator-capacity", 1)
    assert result.returncode != 0
    assert "exceed fixed capacity 1" in result.stderr
    assert "Traceback" not in result.stderr


def test_cli_privacy_check_compliant(tmp_path):
    config = tmp_path / "privacy.yaml"
    config.write_text("differential_privacy:\n  epsilon: 0.5\nk_anonymity:\n  k: 10\n", encoding="utf-8")
    result = run_cli("privacy-check", config)
    assert result.returncode == 0, result.stderr
    assert "✓ Configuration is compliant" in result.stdout


def test_cli_privacy_check_not_compliant(tmp_path):
    config = tmp_path / "privacy.yaml"
    config.write_text("blinding:\n  enabled: false\n", encoding="utf-8")
    result = run_cli("privacy-check", config, "--level", "maximum")
    assert result.returncode == 1
    assert "Achieved privacy level: enhanced" in result.stdout


def test_cli_privacy_check_invalid_config(tmp_path):
    config = tmp_path / "privacy.yaml"
    config.write_text("differential_privacy:\n  epsilon: -1\n", encoding="utf-8")
    result = run_cli("privacy-check", config)
    assert result.returncode == 1
    assert "epsilon must be positive" in result.stderr
