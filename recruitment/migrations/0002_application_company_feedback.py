from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("recruitment", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="application",
            name="feedback_rating",
            field=models.PositiveSmallIntegerField(blank=True, null=True),
        ),
        migrations.AddField(
            model_name="application",
            name="feedback_notes",
            field=models.TextField(blank=True, default=""),
        ),
        migrations.AddField(
            model_name="application",
            name="feedback_strengths",
            field=models.JSONField(blank=True, default=list),
        ),
        migrations.AddField(
            model_name="application",
            name="feedback_concerns",
            field=models.JSONField(blank=True, default=list),
        ),
        migrations.AddField(
            model_name="application",
            name="feedback_recommendation",
            field=models.CharField(
                blank=True,
                choices=[("hire", "Hire"), ("no-hire", "No hire"), ("maybe", "Maybe"), ("interview", "Interview")],
                default="",
                max_length=20,
            ),
        ),
        migrations.AddField(
            model_name="application",
            name="feedback_reviewed_at",
            field=models.DateTimeField(blank=True, null=True),
        ),
        migrations.AddConstraint(
            model_name="application",
            constraint=models.CheckConstraint(
                condition=models.Q(
                    ("feedback_rating__isnull", True),
                    models.Q(("feedback_rating__gte", 1), ("feedback_rating__lte", 5)),
                    _connector="OR",
                ),
                name="applications_rating_range",
            ),
        ),
    ]
