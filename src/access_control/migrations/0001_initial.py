from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="AppPermission",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role", models.CharField(max_length=50)),
                ("resource_key", models.CharField(max_length=100)),
                ("is_allowed", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "app_permissions",
                "ordering": ["resource_key", "role"],
            },
        ),
        migrations.AddConstraint(
            model_name="apppermission",
            constraint=models.UniqueConstraint(fields=("role", "resource_key"), name="uq_app_permission_role_key"),
        ),
    ]
