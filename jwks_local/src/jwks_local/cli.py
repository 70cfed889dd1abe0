"""Typer-based command line interface for jwks-local."""
from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import structlog
import typer

from .config import load_config
from .context import OperationContext
from .exceptions import JwksError
from .logging import configure_logging
from .paths import shrink_home_path
from .services.key_manager import KeyManager
from .services.token_issuer import TokenRequest

app = typer.Typer(help="Local JWKS signing-key authority")

_JWKS_PATH_HELP = "Path to the JWKS source."


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", metavar="PATH", help="Configuration file"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override the configured log level"),
) -> None:
    try:
        app_config = load_config(config)
    except ValueError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    configure_logging(log_level or app_config.logging.normalized_level())
    ctx.obj = OperationContext(config=app_config)


def _manager(ctx: typer.Context) -> KeyManager:
    context: OperationContext = ctx.find_root().obj
    structlog.contextvars.bind_contextvars(command=ctx.info_name)
    return KeyManager(context)


@contextmanager
def _reported() -> Iterator[None]:
    try:
        yield
    except JwksError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def init(
    ctx: typer.Context,
    path: Optional[Path] = typer.Argument(None, help="Directory to initialize; the store goes to PATH/.jwks. Default is ~/.jwks."),
    force: bool = typer.Option(False, "--force", help="Force re-initialization even if already initialized."),
) -> None:
    """Create an empty key set, wiping any existing keys at the target"""
    with _reported():
        store = _manager(ctx).init_store(path, force=force)
    typer.echo(f"Store: {store.display_path}")
    typer.echo()
    typer.echo("Success: JWKS initialized successfully.")


@app.command()
def keygen(
    ctx: typer.Context,
    jwks_path: Optional[Path] = typer.Option(None, "--jwks-path", help=_JWKS_PATH_HELP),
    alg: str = typer.Option("ES256", "--alg", help="Signing algorithm. Only ES256 is supported."),
    name: Optional[str] = typer.Option(None, "--name", help="Name to associate with the generated key."),
    export: bool = typer.Option(False, "--export", help="Export the generated key instead of adding it to the store."),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory for exported key files."),
) -> None:
    """Generate an ES256 key pair"""
    manager = _manager(ctx)
    with _reported():
        root = manager.store_root(jwks_path)
        if out is not None and not export:
            typer.echo("Error: --out requires --export to be specified.", err=True)
            raise typer.Exit(code=1)

        # Exporting to stdout prints only the exported material.
        to_stdout = export and out is None
        if not to_stdout:
            typer.echo(f"Source: {shrink_home_path(root)}")
            typer.echo()

        if export:
            generated = manager.generate_detached(name, alg)
            entry = generated.entry
        else:
            entry = manager.create_key(manager.open_store(jwks_path), name, alg)

        if not to_stdout:
            typer.echo(f"✔ Key generated (kid={entry.kid[:12]}...)")
        if export:
            text = manager.export_detached(generated, out)
            if text is not None:
                typer.echo(text)
            else:
                typer.echo("✔ Key exported")


@app.command()
def keyrm(
    ctx: typer.Context,
    kid: str = typer.Argument(..., help="Key ID (or unique prefix) of the key to remove."),
    jwks_path: Optional[Path] = typer.Option(None, "--jwks-path", help=_JWKS_PATH_HELP),
    yes: bool = typer.Option(False, "-y", "--yes", help="Assume 'yes' as answer to all prompts."),
) -> None:
    """Remove a key and its private key file"""
    manager = _manager(ctx)
    with _reported():
        store, entry = manager.find_key(kid, jwks_path)
        typer.echo(f"Source: {store.display_path}")
        typer.echo()
        if not yes:
            typer.echo("The following key(s) will be removed:")
            typer.echo(f"- {entry.kid[:12]}...")
            if not typer.confirm("Continue?", default=False):
                raise typer.Exit(code=1)
        removed = manager.remove_keys(store, [entry])
    for key in removed:
        typer.echo(f"✔ Key removed (kid={key.kid[:12]}...)")


@app.command()
def status(
    ctx: typer.Context,
    jwks_path: Optional[Path] = typer.Option(None, "--jwks-path", help=_JWKS_PATH_HELP),
) -> None:
    """Show the store location and its keys"""
    manager = _manager(ctx)
    with _reported():
        store = manager.open_store(jwks_path)
    typer.echo(f"Store: {store.display_path}")
    typer.echo()
    typer.echo("Keys:" if len(store) else "No keys found.")
    for key in store:
        name = f", name: {key.name}" if key.name else ""
        typer.echo(f"- kid: {key.kid[:16]} ({key.alg}){name}")
    typer.echo()
    typer.echo(f"Issuer: {manager.context.config.token.issuer}")


@app.command()
def export(
    ctx: typer.Context,
    kid: Optional[str] = typer.Argument(None, help="Key ID (or unique prefix) of the key to export."),
    jwks_path: Optional[Path] = typer.Option(None, "--jwks-path", help=_JWKS_PATH_HELP),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory for exported key files."),
    export_all: bool = typer.Option(False, "--all", help="Export all keys in the JWKS."),
    private: bool = typer.Option(False, "--private", help="Include private key material in the export."),
) -> None:
    """Export public keys, optionally with private key material"""
    with _reported():
        outcome = _manager(ctx).export(
            kid,
            export_all=export_all,
            include_private=private,
            output_dir=out,
            jwks_path=jwks_path,
        )
    if outcome.document is not None:
        typer.echo(outcome.document)
        return
    typer.echo(f"Store: {outcome.store.display_path}")
    typer.echo()
    typer.echo("✔ Keys exported" if export_all else "✔ Key exported")


@app.command()
def token(
    ctx: typer.Context,
    jwks_path: Optional[Path] = typer.Option(None, "--jwks-path", help=_JWKS_PATH_HELP),
    kid: Optional[str] = typer.Option(None, "--kid", help="Key ID of the signing key to use."),
    aud: Optional[str] = typer.Option(None, "--aud", help="Audience claim. Same as `--claim aud=`."),
    sub: Optional[str] = typer.Option(None, "--sub", help="Subject claim. Same as `--claim sub=`."),
    claim: List[str] = typer.Option([], "--claim", help="Additional claim in the format 'type=value'."),
    ttl: Optional[str] = typer.Option(None, "--ttl", help="Token lifetime (e.g. '15m', '1h'). Default is 1 hour."),
    quiet: bool = typer.Option(False, "-q", "--quiet", help="Print only the token."),
) -> None:
    """Issue a signed JWT"""
    manager = _manager(ctx)
    request = TokenRequest(audience=aud, subject=sub, claims=list(claim), ttl=ttl)
    with _reported():
        root = manager.store_root(jwks_path)
        if not quiet:
            typer.echo(f"Source: {shrink_home_path(root)}")
            typer.echo()
        issued = manager.issue_token(request, kid=kid, jwks_path=jwks_path)
    for warning in issued.warnings:
        typer.echo(f"Warning: {warning}", err=True)
    if not quiet:
        typer.echo(f"✔ Token issued (kid={issued.kid[:12]}..., exp={issued.expires:%Y-%m-%dT%H:%MZ})")
        typer.echo()
    typer.echo(issued.token)


@app.command()
def version() -> None:
    from .version import __version__

    typer.echo(__version__)


if __name__ == "__main__":  # pragma: no cover
    app()
