import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PropertyViewingSettings",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("property_id", models.UUIDField(unique=True)),
                ("timezone", models.CharField(default="Africa/Lagos", max_length=64)),
                (
                    "slot_minutes",
                    models.PositiveSmallIntegerField(
                        default=30,
                        validators=[
                            django.core.validators.MinValueValidator(5),
                            django.core.validators.MaxValueValidator(240),
                        ],
                    ),
                ),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Viewing settings",
                "verbose_name_plural": "Viewing settings",
            },
        ),
        migrations.CreateModel(
            name="PropertyAvailabilityRule",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("property_id", models.UUIDField(db_index=True)),
                (
                    "day_of_week",
                    models.PositiveSmallIntegerField(
                        choices=[
                            (0, "Sunday"),
                            (1, "Monday"),
                            (2, "Tuesday"),
                            (3, "Wednesday"),
                            (4, "Thursday"),
                            (5, "Friday"),
                            (6, "Saturday"),
                        ]
                    ),
                ),
                (
                    "start_minute",
                    models.PositiveSmallIntegerField(validators=[django.core.validators.MaxValueValidator(1440)]),
                ),
                (
                    "end_minute",
                    models.PositiveSmallIntegerField(validators=[django.core.validators.MaxValueValidator(1440)]),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name": "Availability rule",
                "verbose_name_plural": "Availability rules",
                "ordering": ["property_id", "day_of_week", "start_minute"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(end_minute__gt=models.F("start_minute")),
                        name="availability_rule_valid_window",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="PropertyAvailabilityException",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("property_id", models.UUIDField(db_index=True)),
                ("local_date", models.DateField()),
                (
                    "exception_type",
                    models.CharField(
                        choices=[("blackout", "Blackout"), ("add_window", "Extra window")],
                        max_length=20,
                    ),
                ),
                ("start_minute", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("end_minute", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name": "Availability exception",
                "verbose_name_plural": "Availability exceptions",
                "ordering": ["property_id", "local_date", "id"],
                "indexes": [
                    models.Index(fields=["property_id", "local_date"], name="sched_exc_property_date_idx")
                ],
            },
        ),
    ]
