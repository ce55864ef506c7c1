"""PostgreSQL exclusion constraint against overlapping active bookings.

Other backends rely on the locked re-check in
``apps.bookings.services.ensure_property_is_available``.
"""

from django.db import migrations

CONSTRAINT_NAME = "shortlet_booking_no_overlap"

FORWARD_SQL = [
    "CREATE EXTENSION IF NOT EXISTS btree_gist;",
    f"""
    ALTER TABLE bookings_shortletbooking
        ADD CONSTRAINT {CONSTRAINT_NAME}
        EXCLUDE USING gist (
            property_id WITH =,
            daterange(check_in, check_out, '[)') WITH &&
        )
        WHERE (status IN ('pending_payment', 'pending', 'confirmed'));
    """,
]

REVERSE_SQL = [
    f"ALTER TABLE bookings_shortletbooking DROP CONSTRAINT IF EXISTS {CONSTRAINT_NAME};",
]


def _run_on_postgresql(statements):
    def run(apps, schema_editor):
        if schema_editor.connection.vendor != "postgresql":
            return
        for statement in statements:
            schema_editor.execute(statement)

    return run


class Migration(migrations.Migration):

    dependencies = [
        ("bookings", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(
            _run_on_postgresql(FORWARD_SQL),
            _run_on_postgresql(REVERSE_SQL),
        ),
    ]
