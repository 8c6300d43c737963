# Overview: Flask CLI commands for inspecting the terminal's shift from the shell.

# backend/branchwise/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP (e.g. FLASK_APP="branchwise:create_app").
# - Set POS_API_URL / POS_API_TOKEN, and POS_BRANCH_ID / POS_USER_ID or pass the options below.
#
# Shift inspection:
# - python -m flask shift status [--user-id 3] [--branch-id 1]
#   Show the active shift for the cashier at the branch.
# - python -m flask shift breakdown [--user-id 3] [--branch-id 1]
#   Show per-method totals and expected cash for the active shift (read-only).

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import PosError
from .extensions import terminal
from .services.payment_service import PAYMENT_METHODS


def _session(user_id, branch_id):
    user_id = user_id or current_app.config.get("POS_USER_ID")
    branch_id = branch_id or current_app.config.get("POS_BRANCH_ID")
    if not user_id or not branch_id:
        raise click.UsageError("Set POS_USER_ID and POS_BRANCH_ID or pass --user-id / --branch-id")
    try:
        return terminal.session_for(user_id, branch_id)
    except PosError as e:
        raise click.ClickException(e.message)


@click.group('shift')
def shift_group():
    """Shift inspection commands."""


@shift_group.command('status')
@click.option('--user-id', type=int, default=None, help='Cashier id (defaults to POS_USER_ID)')
@click.option('--branch-id', type=int, default=None, help='Branch id (defaults to POS_BRANCH_ID)')
@with_appcontext
def shift_status(user_id, branch_id):
    """Show the active shift for a cashier at a branch."""
    session = _session(user_id, branch_id)
    shift = session.active_shift

    if shift is None:
        click.echo(f"No active shift at branch {session.context.branch_id}.")
        return

    click.echo(f"Shift {shift.id} ({shift.status})")
    click.echo(f"  Cashier:          {shift.user_name or shift.user_id}")
    click.echo(f"  Started:          {shift.start_shift or '-'}")
    click.echo(f"  Starting balance: {shift.starting_balance}")
    click.echo(f"  Total sales:      {shift.total_sales}")


@shift_group.command('breakdown')
@click.option('--user-id', type=int, default=None, help='Cashier id (defaults to POS_USER_ID)')
@click.option('--branch-id', type=int, default=None, help='Branch id (defaults to POS_BRANCH_ID)')
@with_appcontext
def shift_breakdown(user_id, branch_id):
    """Show per-method totals and expected cash for the active shift."""
    session = _session(user_id, branch_id)
    try:
        breakdown = session.prepare_end_shift()
    except PosError as e:
        raise click.ClickException(e.message)

    click.echo(f"Shift {breakdown.shift_id}: {breakdown.sale_count} completed sale(s)")
    for method in PAYMENT_METHODS:
        click.echo(f"  {method:<10} {breakdown.total_for(method)}")
    if breakdown.unrecognized_methods:
        click.echo(f"  {'other':<10} {breakdown.total_for('other')}  ({', '.join(breakdown.unrecognized_methods)})")
    click.echo(f"  Total sales:   {breakdown.total_sales}")
    click.echo(f"  Starting cash: {breakdown.starting_balance}")
    click.echo(f"  Expected cash: {breakdown.expected_cash}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(shift_group)
