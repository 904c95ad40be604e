"""Flask CLI commands for the appointment store."""

from __future__ import annotations

import datetime as dt

import click

from clinic_calendar.models import ensure_base_tables
from clinic_calendar.services.appointments import create_appointment, current_catalog
from clinic_calendar.services.patients import create_patient, list_patients

DEMO_PATIENTS = (
    {"name": "Michael Brown", "phone": "0412 555 101"},
    {"name": "Lisa Anderson", "phone": "0412 555 102"},
    {"name": "David Kim", "phone": "0412 555 103"},
    {"name": "Anna Rodriguez", "phone": "0412 555 104"},
)


def register_cli(app) -> None:
    @app.cli.command("init-db")
    def init_db_command() -> None:
        """Create the store tables if they are missing."""
        ensure_base_tables()
        click.echo("Store tables ready.")

    @app.cli.command("seed-demo")
    @click.option("--day", default=None, help="ISO date to book on (defaults to today, UTC).")
    def seed_demo_command(day: str | None) -> None:
        """Insert demo patients and one afternoon of appointments."""
        ensure_base_tables()
        if list_patients():
            click.echo("Patients already present; skipping seed.")
            return
        base = dt.date.fromisoformat(day) if day else dt.datetime.now(dt.timezone.utc).date()
        catalog = current_catalog()
        start = dt.datetime.combine(base, dt.time(15, 0), tzinfo=dt.timezone.utc)
        durations = (30, 15, 45, 20)
        for idx, (details, minutes) in enumerate(zip(DEMO_PATIENTS, durations)):
            patient = create_patient(details)
            end = start + dt.timedelta(minutes=minutes)
            create_appointment(
                {
                    "patient_id": patient["id"],
                    "patient_name": patient["name"],
                    "practitioner": catalog.practitioners[idx % len(catalog.practitioners)].id,
                    "appointment_type": catalog.appointment_types[idx % len(catalog.appointment_types)],
                    "start": start.isoformat(),
                    "end": end.isoformat(),
                }
            )
            start = end
        click.echo(f"Seeded {len(DEMO_PATIENTS)} patients and appointments on {base.isoformat()}.")
