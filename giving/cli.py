"""CLI tools for platform administration."""

import click
from sqlalchemy import select

from giving.core.errors import AppError
from giving.db.enums import MatchingType
from giving.db.models import Company
from giving.db.session import SessionLocal
from giving.schemas.company import CompanyCreate
from giving.schemas.values import MatchingProgram
from giving.services import auth_service, company_service, donation_service


@click.group()
def cli():
    """Giving platform CLI tools."""
    pass


def _company_by_domain(db, domain: str) -> Company | None:
    return db.execute(
        select(Company).where(Company.domain == company_service.normalize_domain(domain))
    ).scalar_one_or_none()


@cli.command()
@click.option("--name", required=True, help="Company name")
@click.option("--domain", required=True, help="Email domain employees register with")
@click.option(
    "--matching-type",
    type=click.Choice([t.value for t in MatchingType]),
    default=MatchingType.NONE.value,
    help="Matching program type",
)
@click.option("--percentage", default=0.0, help="Match percentage (0-100)")
@click.option("--fixed-amount", default=0.0, help="Fixed match per donation")
@click.option("--max-per-employee", default=None, type=float, help="Per-donation match cap")
@click.option("--annual-limit", default=None, type=float, help="Company-wide yearly budget")
def create_company(
    name: str,
    domain: str,
    matching_type: str,
    percentage: float,
    fixed_amount: float,
    max_per_employee: float | None,
    annual_limit: float | None,
):
    """
    Create a tenant company.

    Example:
        python -m giving.cli create-company --name "Acme" --domain acme.com \\
            --matching-type percentage --percentage 50 --annual-limit 50000
    """
    db = SessionLocal()
    try:
        program = MatchingProgram(
            enabled=matching_type != MatchingType.NONE.value,
            type=MatchingType(matching_type),
            percentage=percentage,
            fixed_amount=fixed_amount,
            max_match_per_employee=max_per_employee,
            annual_limit=annual_limit,
        )
        company = company_service.create_company(
            db, CompanyCreate(name=name, domain=domain, matching_program=program)
        )
        click.echo(f"✓ Created company: {company.name}")
        click.echo(f"  ID: {company.id}")
        click.echo(f"  Domain: {company.domain}")
    except AppError as e:
        db.rollback()
        click.echo(f"❌ {e.message}")
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="Super admin email")
@click.option("--password", required=True, prompt=True, hide_input=True, help="Password")
@click.option("--first-name", default="Platform", help="First name")
@click.option("--last-name", default="Admin", help="Last name")
def create_super_admin(email: str, password: str, first_name: str, last_name: str):
    """
    Provision a platform super admin. Not available over the API.

    Example:
        python -m giving.cli create-super-admin --email ops@example.com
    """
    db = SessionLocal()
    try:
        user = auth_service.create_super_admin(db, email, password, first_name, last_name)
        click.echo(f"✓ Created super admin: {user.email}")
        click.echo(f"  ID: {user.id}")
    except AppError as e:
        db.rollback()
        click.echo(f"❌ {e.message}")
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email to revoke sessions for")
def revoke_sessions(email: str):
    """
    Revoke all tokens for a user by bumping their token_version.

    Example:
        python -m giving.cli revoke-sessions --email "user@example.com"
    """
    db = SessionLocal()
    try:
        user = auth_service.get_user_by_email(db, email)
        if not user:
            click.echo(f"❌ User not found: {email}")
            return

        old_version = user.token_version
        auth_service.logout(db, user)
        click.echo(f"✓ Revoked all sessions for {user.email}")
        click.echo(f"  Token version: {old_version} → {user.token_version}")
    finally:
        db.close()


@cli.command()
@click.option("--domain", default=None, help="Limit to one company (default: all)")
@click.option("--year", default=None, type=int, help="Only donations created in this year")
@click.option("--dry-run", is_flag=True, help="Preview changes without applying")
def reconcile_matching(domain: str | None, year: int | None, dry_run: bool):
    """
    Recompute matching amounts and used budget in donation order.

    Example:
        python -m giving.cli reconcile-matching --domain acme.com --year 2026
    """
    db = SessionLocal()
    try:
        if domain:
            company = _company_by_domain(db, domain)
            if not company:
                click.echo(f"❌ Company not found: {domain}")
                return
            companies = [company]
        else:
            companies = db.execute(select(Company).order_by(Company.name)).scalars().all()

        if dry_run:
            click.echo("🔍 DRY RUN - no changes will be made")

        for company in companies:
            used = donation_service.reconcile_matching(db, company, year)
            click.echo(f"  {company.domain}: matching used = {used}")

        if dry_run:
            db.rollback()
        else:
            db.commit()
            click.echo(f"✓ Reconciled {len(companies)} company(ies)")
    finally:
        db.close()


@cli.command()
@click.option("--domain", required=True, help="Company domain")
def reset_matching_usage(domain: str):
    """
    Zero a company's used matching budget at the start of a program year.

    Example:
        python -m giving.cli reset-matching-usage --domain acme.com
    """
    db = SessionLocal()
    try:
        company = _company_by_domain(db, domain)
        if not company:
            click.echo(f"❌ Company not found: {domain}")
            return
        company_service.reset_matching_usage(db, company)
        db.commit()
        click.echo(f"✓ Reset matching usage for {company.domain}")
    finally:
        db.close()


if __name__ == "__main__":
    cli()
