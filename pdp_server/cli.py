# (c) Copyright Datacraft, 2026
"""pdp-server command line interface."""
import click

from pdp_server.errors import PDPError


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logs")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """Multi-tenant policy decision point."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = "DEBUG" if verbose else None


@cli.command()
@click.option("--host", default="0.0.0.0", help="Host to bind to")
@click.option("--port", default=7000, type=int, help="Port to bind to")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int):
    """Start the HTTP decision API."""
    import uvicorn
    from pdp_server.config import get_settings
    from pdp_server.main import create_app

    settings = get_settings()
    if ctx.obj.get("log_level"):
        settings = settings.model_copy(update={"log_level": ctx.obj["log_level"]})

    click.echo(f"Starting pdp-server on {host}:{port}")
    uvicorn.run(create_app(settings), host=host, port=port, reload=False)


@cli.command("validate-policy")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def validate_policy(path: str):
    """Load a policy set file and report its roles and rules."""
    from pdp_server.abac import PolicySet

    try:
        policy = PolicySet.from_file(path)
    except PDPError as e:
        raise click.ClickException(str(e))

    click.echo(f"combining algorithm: {policy.combining_algorithm.value}")
    click.echo(f"roles: {', '.join(sorted(policy.roles)) or '-'}")
    for rule in policy.rules:
        target = ",".join(rule.actions) + " on " + (",".join(rule.resource_types) or "*")
        click.echo(f"  {rule.effect.value:5} {rule.name}: {target}")


@cli.command("validate-rules")
@click.argument("path", type=click.Path(exists=True))
def validate_rules(path: str):
    """Load custom attribute rules and list the registered attributes."""
    from pdp_server.plugins import load_custom_rules

    try:
        registry = load_custom_rules(path)
    except PDPError as e:
        raise click.ClickException(str(e))

    names = [rule.name for rule in registry.rules]
    click.echo(f"custom attributes: {', '.join(names) or '-'}")


def main():
    cli(obj={})
