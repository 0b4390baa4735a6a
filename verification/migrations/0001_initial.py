import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="VerificationCode",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("subject", models.CharField(max_length=254, verbose_name="subject")),
                (
                    "purpose",
                    models.CharField(
                        choices=[
                            ("otp_login", "OTP login"),
                            ("password_change", "Password change"),
                        ],
                        max_length=32,
                        verbose_name="purpose",
                    ),
                ),
                ("code_hash", models.CharField(max_length=64, verbose_name="code hash")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("consumed", "Consumed"),
                            ("expired", "Expired"),
                        ],
                        default="pending",
                        max_length=16,
                        verbose_name="status",
                    ),
                ),
                (
                    "issued_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now, verbose_name="issued at"
                    ),
                ),
                ("expires_at", models.DateTimeField(verbose_name="expires at")),
                (
                    "payload",
                    models.TextField(blank=True, default="", verbose_name="payload"),
                ),
                (
                    "consumed_at",
                    models.DateTimeField(
                        blank=True, null=True, verbose_name="consumed at"
                    ),
                ),
                (
                    "applied_at",
                    models.DateTimeField(
                        blank=True, null=True, verbose_name="applied at"
                    ),
                ),
                (
                    "version",
                    models.PositiveIntegerField(default=0, verbose_name="version"),
                ),
            ],
            options={
                "verbose_name": "verification code",
                "verbose_name_plural": "verification codes",
                "indexes": [
                    models.Index(
                        fields=["expires_at"], name="verification_expires_idx"
                    )
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("subject", "purpose"),
                        name="unique_code_per_subject_purpose",
                    )
                ],
            },
        ),
    ]
