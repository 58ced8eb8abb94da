"""Command line interface for the Pulsar benchmark driver."""

import sys

import click
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .driver_pulsar.admin_gateway import PulsarAdminGateway
from .driver_pulsar.cleanup_coordinator import CleanupCoordinator, CleanupReport
from .driver_pulsar.config import load_config
from .driver_pulsar.errors import SetupError
from .driver_pulsar.pulsar_benchmark_driver import PulsarBenchmarkDriver
from .utils.logging import setup_logging


console = Console()


@click.group()
@click.option('--log-level', default='INFO', help='Logging level')
@click.option('--log-file', help='Log file path')
@click.pass_context
def cli(ctx, log_level, log_file):
    """Pulsar driver for the OpenMessaging benchmark."""
    ctx.ensure_object(dict)
    ctx.obj['log_level'] = log_level
    ctx.obj['log_file'] = log_file

    setup_logging(level=log_level, log_file=log_file, component="cli")


@cli.command()
@click.option('--driver', '-d', required=True, type=click.Path(exists=True, dir_okay=False),
              help='Driver configuration file')
def check(driver):
    """Provision a namespace, print it, then tear everything down."""
    console.print(f"[bold blue]Initializing Pulsar driver...[/bold blue]")

    pulsar_driver = PulsarBenchmarkDriver()
    try:
        pulsar_driver.initialize(driver)
    except SetupError as e:
        console.print(f"[red]✗ Initialization failed: {escape(str(e))}[/red]")
        pulsar_driver.close()
        sys.exit(1)

    try:
        table = Table(title="Pulsar Driver")
        table.add_column("Property", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Namespace", pulsar_driver.namespace)
        table.add_row("Topic prefix", pulsar_driver.get_topic_name_prefix())
        console.print(table)
    finally:
        pulsar_driver.close()

    console.print(f"[green]✓ Driver initialized and closed successfully[/green]")


@cli.command()
@click.option('--driver', '-d', required=True, type=click.Path(exists=True, dir_okay=False),
              help='Driver configuration file')
@click.option('--delete-namespaces/--keep-namespaces', default=None,
              help='Also delete the benchmark namespaces (defaults to the configuration)')
def cleanup(driver, delete_namespaces):
    """Delete every topic and subscription left under the benchmark tenant."""
    try:
        config = load_config(driver)
    except (OSError, TypeError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]✗ Invalid driver configuration: {escape(str(e))}[/red]")
        sys.exit(1)
    if delete_namespaces is None:
        delete_namespaces = config.cleanup.delete_namespaces

    admin = PulsarAdminGateway(config.client)
    try:
        report = CleanupCoordinator(admin, config.client.tenant,
                                    delete_namespaces=delete_namespaces).sweep()
    finally:
        admin.close()

    _display_report(config.client.tenant, report)
    if not report.ok:
        sys.exit(1)


def _display_report(tenant: str, report: CleanupReport):
    table = Table(title=f"Cleanup of tenant {tenant}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Namespaces", str(len(report.namespaces)))
    table.add_row("Topics deleted", str(len(report.topics_deleted)))
    table.add_row("Subscriptions deleted", str(report.subscriptions_deleted))
    table.add_row("Namespaces deleted", str(len(report.namespaces_deleted)))
    table.add_row("Failures", str(len(report.failures)))
    console.print(table)

    for failure in report.failures:
        console.print(f"[red]✗ {escape(str(failure))}[/red]")


def main():
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()
