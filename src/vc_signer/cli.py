"""
Command-line interface for VC Signer.

Usage:
    vc-signer keygen
    vc-signer sign credential.json --private-key <base64 pkcs8>
    vc-signer verify signed.json --public-key <base64 spki>
    cat presentation.json | vc-signer sign - --presentation
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import click
import httpx
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from vc_signer.canonical import CanonicalizationError, canonicalize
from vc_signer.keys import KeyFormatError, create_wallet, generate_key_pair
from vc_signer.service import CredentialService, SigningError

console = Console()
err_console = Console(stderr=True)

LIBRARY_ERRORS = (KeyFormatError, CanonicalizationError, SigningError)


def configure_logging(level: str) -> None:
    """Route library logging (including audit records) to stderr."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def load_document(source: str, timeout: float = 30.0, verify_ssl: bool = True) -> dict[str, Any]:
    """Load a JSON document from file, URL, or stdin.

    Args:
        source: File path, URL, or "-" for stdin.
        timeout: HTTP request timeout in seconds.
        verify_ssl: Whether to verify SSL certificates.

    Returns:
        Parsed document JSON.
    """
    if source == "-":
        return json.loads(sys.stdin.read())

    if source.startswith("http://") or source.startswith("https://"):
        with httpx.Client(timeout=timeout, verify=verify_ssl) as client:
            response = client.get(
                source,
                headers={"Accept": "application/vc+ld+json, application/json"},
            )
            response.raise_for_status()
            return response.json()

    path = Path(source)
    if not path.exists():
        raise click.ClickException(f"File not found: {source}")

    with path.open(encoding="utf-8") as f:
        return json.load(f)


def format_result(document: dict[str, Any], valid: bool, presentation: bool) -> None:
    """Format and print a verification result."""
    if valid:
        status_icon = "[bold green]VALID[/]"
        panel_style = "green"
    else:
        status_icon = "[bold red]INVALID[/]"
        panel_style = "red"

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="dim")
    table.add_column("Value")

    table.add_row("Status", status_icon)
    table.add_row("Kind", "Presentation" if presentation else "Credential")

    if document.get("id"):
        table.add_row("ID", str(document["id"]))

    signer_field = "holder" if presentation else "issuer"
    if document.get(signer_field):
        table.add_row(signer_field.capitalize(), str(document[signer_field]))

    proof = document.get("proof")
    if isinstance(proof, dict):
        table.add_row("Proof Type", str(proof.get("type", "-")))
        table.add_row("Verification Method", str(proof.get("verificationMethod", "-")))
        table.add_row("Proof Purpose", str(proof.get("proofPurpose", "-")))
        table.add_row("Created", str(proof.get("created", "-")))
    else:
        table.add_row("Proof", "[red]Missing[/]")

    console.print(Panel(table, title="Verification Result", border_style=panel_style))


def fail(message: str, json_output: bool) -> None:
    """Report an error and exit with status 2."""
    if json_output:
        console.print_json(data={"error": message})
    else:
        err_console.print(f"[red]Error:[/] {message}")
    sys.exit(2)


source_argument = click.argument("source", required=True)
presentation_option = click.option(
    "--presentation",
    is_flag=True,
    help="Treat the document as a Verifiable Presentation",
)
timeout_option = click.option(
    "--timeout",
    type=float,
    default=30.0,
    envvar="VC_SIGNER_TIMEOUT",
    show_default=True,
    help="HTTP request timeout in seconds",
)
ssl_option = click.option(
    "--no-ssl-verify",
    is_flag=True,
    help="Disable SSL certificate verification",
)
json_option = click.option(
    "--json-output",
    is_flag=True,
    help="Output result as JSON",
)


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    envvar="VC_SIGNER_LOG_LEVEL",
    show_default=True,
    help="Logging level; INFO shows audit records",
)
@click.version_option(package_name="vc-signer")
def main(log_level: str) -> None:
    """Sign and verify W3C Verifiable Credentials and Presentations."""
    configure_logging(log_level)


@main.command()
def keygen() -> None:
    """Generate a new ECDSA P-256 key pair (Base64 DER)."""
    console.print_json(data=generate_key_pair().to_dict())


@main.command()
def wallet() -> None:
    """Generate a key pair bound to a new did:example identifier."""
    console.print_json(data=create_wallet().to_dict())


@main.command()
@source_argument
@click.option(
    "--private-key",
    required=True,
    envvar="VC_SIGNER_PRIVATE_KEY",
    help="Base64 PKCS8 DER private key",
)
@click.option(
    "--verification-method",
    default=None,
    help="DID URL for the proof (derived from issuer/holder if omitted)",
)
@presentation_option
@timeout_option
@ssl_option
def sign(
    source: str,
    private_key: str,
    verification_method: str | None,
    presentation: bool,
    timeout: float,
    no_ssl_verify: bool,
) -> None:
    """Sign a credential or presentation and print the signed document.

    SOURCE can be a file path, a URL, or "-" to read from stdin.
    """
    try:
        document = load_document(source, timeout=timeout, verify_ssl=not no_ssl_verify)
        service = CredentialService()
        if presentation:
            signed = service.sign_presentation(document, private_key, verification_method)
        else:
            signed = service.sign(document, private_key, verification_method)
    except json.JSONDecodeError as e:
        fail(f"Invalid JSON: {e}", json_output=False)
    except httpx.HTTPError as e:
        fail(f"HTTP error: {e}", json_output=False)
    except LIBRARY_ERRORS as e:
        fail(str(e), json_output=False)
    else:
        console.print_json(data=signed)


@main.command()
@source_argument
@click.option(
    "--public-key",
    required=True,
    envvar="VC_SIGNER_PUBLIC_KEY",
    help="Base64 SPKI DER public key",
)
@presentation_option
@timeout_option
@ssl_option
@json_option
def verify(
    source: str,
    public_key: str,
    presentation: bool,
    timeout: float,
    no_ssl_verify: bool,
    json_output: bool,
) -> None:
    """Verify the proof on a credential or presentation.

    Exits 0 when the signature is valid, 1 when it is not, 2 on errors.

    Examples:

        vc-signer verify signed.json --public-key MFkw...

        curl -s https://api.example.com/vc/123 | vc-signer verify - --public-key MFkw...
    """
    try:
        document = load_document(source, timeout=timeout, verify_ssl=not no_ssl_verify)
        service = CredentialService()
        if presentation:
            valid = service.verify_presentation(document, public_key)
        else:
            valid = service.verify(document, public_key)
    except json.JSONDecodeError as e:
        fail(f"Invalid JSON: {e}", json_output)
    except httpx.HTTPError as e:
        fail(f"HTTP error: {e}", json_output)
    except LIBRARY_ERRORS as e:
        fail(str(e), json_output)
    else:
        if json_output:
            console.print_json(
                data={
                    "valid": valid,
                    "kind": "presentation" if presentation else "credential",
                }
            )
        else:
            format_result(document, valid, presentation)
        sys.exit(0 if valid else 1)


@main.command(name="canonicalize")
@source_argument
@click.option(
    "--exclude-proof",
    is_flag=True,
    help="Drop the proof field before canonicalizing",
)
@timeout_option
@ssl_option
def canonicalize_command(
    source: str,
    exclude_proof: bool,
    timeout: float,
    no_ssl_verify: bool,
) -> None:
    """Print the canonical form that gets signed."""
    try:
        document = load_document(source, timeout=timeout, verify_ssl=not no_ssl_verify)
        canonical = canonicalize(document, exclude_proof=exclude_proof)
    except json.JSONDecodeError as e:
        fail(f"Invalid JSON: {e}", json_output=False)
    except httpx.HTTPError as e:
        fail(f"HTTP error: {e}", json_output=False)
    except CanonicalizationError as e:
        fail(str(e), json_output=False)
    else:
        click.echo(canonical)


if __name__ == "__main__":
    main()
