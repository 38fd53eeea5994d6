import logging

from survey_management import Settings, build_service

# === CONFIG ===
# Reads the same environment variables as the Lambda (SURVEY_TABLE, SURVEY_BUCKET,
# AWS_REGION, DYNAMODB_ENDPOINT_URL, S3_ENDPOINT_URL).


def provision(settings: Settings) -> None:
    """Create the survey index table and document bucket if they are missing."""
    service = build_service(settings)
    service.index.ensure_exists()
    service.documents.ensure_exists()
    print(f"Table {settings.table_name} and bucket {settings.bucket_name} are ready in {settings.region}.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    provision(Settings.from_env())
