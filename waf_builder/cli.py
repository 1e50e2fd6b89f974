"""
Command-line interface for waf_builder.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from . import __version__
from .core.capacity import MAX_WEB_ACL_CAPACITY
from .core.config import BuilderConfig
from .core.errors import WafBuilderError
from .core.logging_config import get_logger, log_error, log_success, log_warning, setup_logging
from .core.stack import WafStack

console = Console()

app = typer.Typer(
    help="waf-builder - Declarative AWS WAFv2 web ACLs",
    no_args_is_help=True,
)
logger = get_logger(__name__)

LOAD_ERRORS = (WafBuilderError, ValueError, OSError, yaml.YAMLError)

EXAMPLE_STACK: Dict[str, Any] = {
    "name": "example-api-protection",
    "description": "Web ACL protecting a regional API",
    "ip_sets": [
        {
            "name": "blocked-addresses",
            "scope": "REGIONAL",
            "ip_address_version": "IPV4",
            "addresses": ["192.0.2.0/24", "198.51.100.7/32"],
        }
    ],
    "regex_pattern_sets": [
        {
            "name": "bad-user-agents",
            "scope": "REGIONAL",
            "regular_expressions": ["^curl/.*", "^sqlmap/.*"],
        }
    ],
    "rule_groups": [
        {
            "name": "api-hygiene",
            "scope": "REGIONAL",
            "rules": [
                {
                    "name": "block-bad-user-agents",
                    "action": {"type": "block"},
                    "statement": {
                        "kind": "field_inspection",
                        "field_to_match": {"type": "SINGLE_HEADER", "name": "user-agent"},
                        "match_condition": {"regex_pattern_set": "bad-user-agents"},
                        "text_transformations": ["LOWERCASE"],
                    },
                }
            ],
        }
    ],
    "web_acls": [
        {
            "name": "api-web-acl",
            "scope": "REGIONAL",
            "default_action": {"type": "allow"},
            "rules": [
                {
                    "name": "block-listed-addresses",
                    "action": {"type": "block"},
                    "statement": {"kind": "ip_set_match", "ip_set": "blocked-addresses"},
                },
                {
                    "name": "rate-limit",
                    "action": {"type": "block", "response_code": 429},
                    "statement": {"kind": "rate_limit", "limit": 2000},
                },
                {"vendor_name": "AWS", "rule_group_name": "AWSManagedRulesCommonRuleSet"},
                {"rule_group": "api-hygiene"},
            ],
        }
    ],
    "logging": [
        {
            "web_acl": "api-web-acl",
            "destination": {"log_destination_service": "CLOUDWATCH"},
        }
    ],
    "associations": [
        {
            "web_acl": "api-web-acl",
            "resource": {
                "type": "application_load_balancer",
                "name": "public-alb",
                "arn": "arn:aws:elasticloadbalancing:us-east-1:123456789012:loadbalancer/app/public/50dc6c495c0c9188",
            },
        }
    ],
}


def version_callback(value: bool):
    if value:
        console.print(f"waf-builder version {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version information",
    ),
    verbose: int = typer.Option(
        0, "-v", "--verbose", count=True, help="Increase verbosity (-v, -vv)"
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", help="Configuration file (default: ~/.waf-builder/config.yaml)"
    ),
):
    """
    waf-builder - Declarative AWS WAFv2 web ACLs
    """
    setup_logging(min(verbose, 2))
    ctx.obj = BuilderConfig.load_from_file(config_file)


def load_stack(stack_file: Path, config: BuilderConfig) -> WafStack:
    """Load a stack definition, applying configured defaults."""
    cost_table = config.cost_table() if config.cost_table_file else None
    return WafStack.from_file(stack_file, cost_table=cost_table, config=config)


def _config(ctx: typer.Context) -> BuilderConfig:
    return ctx.obj if isinstance(ctx.obj, BuilderConfig) else BuilderConfig()


@app.command()
def validate(
    ctx: typer.Context,
    stack_file: Path = typer.Argument(..., help="Path to stack definition (YAML or JSON)"),
):
    """Validate a stack definition."""

    console.print("[bold green]Validating stack...[/bold green]")

    try:
        stack = load_stack(stack_file, _config(ctx))
        console.print(f"✓ Loaded stack: {stack.name}")
        stack.synthesize()
    except LOAD_ERRORS as e:
        console.print(f"[red]✗ Stack validation failed: {e}[/red]")
        log_error(f"Stack validation failed: {e}", logger)
        raise typer.Exit(1)

    console.print("[green]✓ Stack is valid![/green]")

    for web_acl in stack.web_acls:
        if not web_acl.rules:
            console.print(
                f"[yellow]Warning: web ACL '{web_acl.name}' has no rules; "
                f"every request gets its default action[/yellow]"
            )
            log_warning(f"Web ACL '{web_acl.name}' has no rules", logger)

    display_stack_summary(stack)


@app.command()
def synth(
    ctx: typer.Context,
    stack_file: Path = typer.Argument(..., help="Path to stack definition (YAML or JSON)"),
    output_format: str = typer.Option("json", help="Output format: json, yaml"),
    output_file: Optional[Path] = typer.Option(None, help="Output file path"),
):
    """Synthesize a stack definition into a CloudFormation template."""

    if output_format not in ("json", "yaml"):
        console.print(f"[red]Unknown output format: {output_format}[/red]")
        raise typer.Exit(1)

    try:
        stack = load_stack(stack_file, _config(ctx))
        template = stack.synthesize()
    except LOAD_ERRORS as e:
        console.print(f"[red]Error synthesizing stack: {e}[/red]")
        log_error(f"Error synthesizing stack: {e}", logger)
        raise typer.Exit(1)

    content = template.to_yaml() if output_format == "yaml" else template.to_json()
    if output_file:
        output_file.write_text(content)
        console.print(f"✓ Template saved to {output_file}")
        log_success(f"Template saved to {output_file}", logger)
    else:
        # Plain print keeps the template free of rich markup.
        print(content)


@app.command()
def capacity(
    ctx: typer.Context,
    stack_file: Path = typer.Argument(..., help="Path to stack definition (YAML or JSON)"),
):
    """Show the capacity units (WCU) used by each rule."""

    try:
        stack = load_stack(stack_file, _config(ctx))
    except LOAD_ERRORS as e:
        console.print(f"[red]Error loading stack: {e}[/red]")
        log_error(f"Error loading stack: {e}", logger)
        raise typer.Exit(1)

    for rule_group in stack.rule_groups:
        display_capacity(
            f"Rule group {rule_group.name}",
            rule_group.prioritized_rules,
            rule_group.cost_table,
            f"{rule_group.required_capacity} of {rule_group.capacity}",
        )
    for web_acl in stack.web_acls:
        display_capacity(
            f"Web ACL {web_acl.name}",
            web_acl.prioritized_rules,
            web_acl.cost_table,
            f"{web_acl.capacity} of {MAX_WEB_ACL_CAPACITY}",
        )


@app.command()
def create_example(
    output_file: Path = typer.Argument(..., help="Output file path for example stack"),
    output_format: str = typer.Option("yaml", help="Output format: yaml, json"),
):
    """Create an example stack definition."""

    console.print("Creating example stack...")

    # Fails loudly if the example ever drifts out of sync with the models.
    WafStack.from_dict(EXAMPLE_STACK)

    if output_format == "json":
        content = json.dumps(EXAMPLE_STACK, indent=2)
    else:
        content = yaml.safe_dump(EXAMPLE_STACK, default_flow_style=False, sort_keys=False)

    output_file.write_text(content)
    console.print(f"✓ Example stack created: {output_file}")


def display_stack_summary(stack: WafStack):
    """Display stack summary."""
    console.print("\n[bold]Stack Summary[/bold]")

    table = Table()
    table.add_column("Component", style="cyan")
    table.add_column("Count", style="white")

    table.add_row("IP Sets", str(len(stack.ip_sets)))
    table.add_row("Regex Pattern Sets", str(len(stack.regex_pattern_sets)))
    table.add_row("Rule Groups", str(len(stack.rule_groups)))
    table.add_row("Web ACLs", str(len(stack.web_acls)))
    table.add_row("Total Web ACL Rules", str(sum(len(acl.rules) for acl in stack.web_acls)))
    table.add_row("Logging Configurations", str(len(stack.logging)))
    table.add_row("Associations", str(len(stack.associations)))

    console.print(table)


def display_capacity(title: str, prioritized_rules, cost_table, total: str):
    """Display per-rule capacity of one web ACL or rule group."""
    table = Table(title=title)
    table.add_column("Priority", style="cyan")
    table.add_column("Rule", style="white")
    table.add_column("WCU", style="green", justify="right")

    for prioritized in prioritized_rules:
        table.add_row(
            str(prioritized.priority),
            prioritized.name,
            str(prioritized.rule.capacity(cost_table)),
        )
    table.add_row("", "[bold]Total[/bold]", f"[bold]{total}[/bold]")

    console.print(table)


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
