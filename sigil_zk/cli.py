"""
Command-Line Interface for sigil-zk

Analyze repository records, prove credential claims over them and check
privacy configurations.
"""

import click
import dataclasses
import json
import logging
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import numpy as np
from nacl.signing import SigningKey
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from sigil_zk import __version__, print_disclaimer
from sigil_zk.analyzers.records import RepositoryData
from sigil_zk.analyzers.repository import RepositoryAnalysis, RepositoryAnalyzer
from sigil_zk.circuits.capacity import smallest_tier_for
from sigil_zk.circuits.config import DEFAULT_COLLABORATOR_CAPACITY, DEFAULT_COMMIT_CAPACITY
from sigil_zk.circuits.credentials.repository import RepositoryCredential
from sigil_zk.circuits.exceptions import SigilError, UnsatisfiedConstraint
from sigil_zk.circuits.packer import pack_repository_credential
from sigil_zk.circuits.prover import TranscriptProver
from sigil_zk.circuits.types import Proof
from sigil_zk.privacy.config import PRIVACY_LEVELS, load_privacy_config
from sigil_zk.privacy.validator import PrivacyValidator

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_repository(path: str) -> RepositoryData:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return RepositoryData.from_dict(data)
    except (OSError, ValueError, KeyError) as e:
        raise click.ClickException(f"Cannot read repository record {path}: {e}")


def _as_of(value: Optional[str]) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"not an ISO-8601 timestamp: {value}", param_hint="--as-of")
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _summary(analysis: RepositoryAnalysis) -> Dict[str, Any]:
    return {
        "repository_id": analysis.repository_id,
        "metrics": dataclasses.asdict(analysis.metrics),
        "collaboration": dataclasses.asdict(analysis.collaboration),
        "privacy": dataclasses.asdict(analysis.privacy),
        "consistency_score": analysis.temporal.consistency_score,
        "languages": [
            {
                "language": lang.language,
                "lines": lang.total_lines,
                "proficiency": lang.proficiency,
                "frameworks": list(lang.frameworks),
            }
            for lang in analysis.languages.languages
        ],
    }


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", is_flag=True, help="Enable debug logging")
def main(verbose):
    """
    sigil-zk - privacy-preserving developer credentials

    ⚠️  EXPERIMENTAL - proofs come from a simulated backend
    """
    _setup_logging(verbose)


@main.command()
@click.argument("repository", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format",
)
@click.option("--as-of", help="Analysis time (ISO-8601, default: now)")
@click.option("--seed", type=int, help="Seed for the privacy noise")
@click.option("--collaborator-capacity", type=int, default=DEFAULT_COLLABORATOR_CAPACITY, show_default=True)
def analyze(repository, output_format, as_of, seed, collaborator_capacity):
    """
    Analyze one repository record.

    Examples:

        sigil analyze repo.json

        sigil analyze repo.json --format json --seed 7
    """
    repo = _load_repository(repository)
    analyzer = RepositoryAnalyzer(rng=np.random.default_rng(seed), max_collaborators=collaborator_capacity)
    try:
        analysis = analyzer.analyze(repo, _as_of(as_of))
    except SigilError as e:
        raise click.ClickException(str(e))
    summary = _summary(analysis)

    if output_format == "json":
        click.echo(json.dumps(summary, indent=2, default=str))
        return

    metrics = Table(title=f"Repository {analysis.repository_id[:12]}")
    metrics.add_column("Metric")
    metrics.add_column("Value", justify="right")
    for name, value in summary["metrics"].items():
        metrics.add_row(name.replace("_", " "), str(value))
    metrics.add_row("consistency score", str(summary["consistency_score"]))
    metrics.add_row("collaboration score", str(analysis.collaboration.collaboration_score))
    metrics.add_row("commit range", _ranges(analysis.privacy.commit_range))
    metrics.add_row("loc range", _ranges(analysis.privacy.loc_range))
    console.print(metrics)

    languages = Table(title="Languages")
    languages.add_column("Language")
    languages.add_column("Lines", justify="right")
    languages.add_column("Proficiency", justify="right")
    languages.add_column("Frameworks")
    for lang in summary["languages"]:
        languages.add_row(
            lang["language"], str(lang["lines"]), str(lang["proficiency"]), ", ".join(lang["frameworks"])
        )
    console.print(languages)


@main.command()
@click.argument("repository", type=click.Path(exists=True, dir_okay=False))
@click.option("--key", "key_file", type=click.Path(exists=True, dir_okay=False), required=True,
              help="File holding the 32-byte Ed25519 seed as hex")
@click.option("--commits", "commit_range", type=(int, int), required=True, help="Claimed commit range MIN MAX")
@click.option("--loc", "loc_range", type=(int, int), required=True, help="Claimed lines-of-code range MIN MAX")
@click.option("--collaborators", "collaborator_range", type=(int, int), required=True,
              help="Claimed collaborator range MIN MAX")
@click.option("--min-language-lines", type=int, default=0, show_default=True)
@click.option("--min-collaboration-score", type=int, default=0, show_default=True)
@click.option("--commit-capacity", type=int, default=DEFAULT_COMMIT_CAPACITY, show_default=True)
@click.option("--language-capacity", type=int, help="Language tier (default: smallest that fits)")
@click.option("--collaborator-capacity", type=int, default=DEFAULT_COLLABORATOR_CAPACITY, show_default=True)
@click.option("--timestamp", type=int, help="Claim timestamp (default: now)")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default="proof.cbor", show_default=True)
def prove(
    repository,
    key_file,
    commit_range,
    loc_range,
    collaborator_range,
    min_language_lines,
    min_collaboration_score,
    commit_capacity,
    language_capacity,
    collaborator_capacity,
    timestamp,
    output,
):
    """
    Prove a repository contribution credential.

    Example:

        sigil prove repo.json --key me.key --commits 100 200 --loc 1000 5000 --collaborators 2 10
    """
    repo = _load_repository(repository)
    try:
        signing_key = SigningKey(bytes.fromhex(Path(key_file).read_text().strip()))
    except ValueError as e:
        raise click.ClickException(f"Invalid signing key in {key_file}: {e}")

    try:
        analysis = RepositoryAnalyzer(max_collaborators=collaborator_capacity).analyze(
            repo, datetime.now(timezone.utc)
        )
        languages = analysis.languages.circuit_inputs.pairs
        collaboration = analysis.collaboration_report.circuit_inputs
        capacities = {
            "commit_capacity": commit_capacity,
            "language_capacity": language_capacity or smallest_tier_for(len(languages)),
            "collaborator_capacity": collaborator_capacity,
        }
        public, private = pack_repository_credential(
            signing_key=signing_key,
            repository=repo.name,
            owner=repo.owner,
            commits=[(c.sha, c.additions, c.deletions) for c in repo.user_commits],
            languages=languages,
            collaborator_ids=collaboration.collaborator_ids,
            contribution_percentage=collaboration.contribution_percentage,
            commit_range=commit_range,
            loc_range=loc_range,
            min_language_lines=min_language_lines,
            collaborator_range=collaborator_range,
            min_collaboration_score=min_collaboration_score,
            timestamp=timestamp if timestamp is not None else int(time.time()),
            **capacities,
        )
        proof = TranscriptProver().prove(RepositoryCredential(**capacities), public, private)
    except UnsatisfiedConstraint as e:
        click.echo(click.style(f"✗ Claim does not hold ({e.label}): {e}", fg="red"), err=True)
        sys.exit(1)
    except (SigilError, ValueError) as e:
        click.echo(click.style(f"✗ Error: {e}", fg="red"), err=True)
        sys.exit(1)

    Path(output).write_bytes(proof.serialize())
    click.echo(click.style(f"✓ Proof written to {output}", fg="green"))
    click.echo(f"  circuit: {proof.circuit_id}")
    click.echo(f"  credential hash: {proof.credential_hash:#x}")


@main.command()
@click.argument("proof_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--circuit-id", help="Require this circuit artifact id")
def verify(proof_file, circuit_id):
    """Verify a serialized proof; exits nonzero when it does not check."""
    try:
        proof = Proof.deserialize(Path(proof_file).read_bytes())
    except (SigilError, ValueError) as e:
        click.echo(click.style(f"✗ Malformed proof: {e}", fg="red"), err=True)
        sys.exit(1)

    if not TranscriptProver().verify(proof, expected_circuit_id=circuit_id):
        click.echo(click.style("✗ Proof does not verify", fg="red"), err=True)
        sys.exit(1)
    click.echo(click.style(f"✓ Proof verifies ({proof.circuit_id})", fg="green"))


@main.command("privacy-check")
@click.argument("config", type=click.Path(exists=True, dir_okay=False))
@click.option("--level", type=click.Choice(PRIVACY_LEVELS), help="Override the configured level")
def privacy_check(config, level):
    """Validate a YAML privacy configuration."""
    try:
        privacy = load_privacy_config(config)
    except SigilError as e:
        raise click.ClickException(str(e))
    if level:
        privacy = dataclasses.replace(privacy, compliance_level=level)

    result = PrivacyValidator().validate_config(privacy)

    table = Table(title=f"Privacy check ({privacy.compliance_level})")
    table.add_column("Severity")
    table.add_column("Requirement")
    table.add_column("Description")
    for violation in result.violations:
        table.add_row(violation.severity, violation.requirement, violation.description)
    for warning in result.warnings:
        table.add_row("warning", warning.kind, warning.description)
    if result.violations or result.warnings:
        console.print(table)

    click.echo(f"Achieved privacy level: {result.privacy_level}")
    if not result.is_compliant:
        click.echo(click.style("✗ Configuration is not compliant", fg="red"), err=True)
        sys.exit(1)
    click.echo(click.style("✓ Configuration is compliant", fg="green"))


@main.command()
def version():
    """Show version and disclaimer information."""
    click.echo(f"\nsigil-zk v{__version__}\n")
    print_disclaimer()


def _ranges(values: Tuple[int, int]) -> str:
    return f"{values[0]}-{values[1]}"


if __name__ == "__main__":
    main()
