from __future__ import annotations

from pathlib import Path

import yaml

from bank_services.account_service.application.security import CredentialService, CredentialSettings
from bank_services.account_service.config import ServiceSettings
from bank_services.account_service.infrastructure.memory import InMemoryAccountStore
from bank_services.account_service.presentation.main import create_app


OUTPUT_PATH = Path("bank_services") / "account_service" / "openapi.yaml"


def build_app():
    # Schema generation needs neither a database nor a real signing key.
    return create_app(
        store=InMemoryAccountStore(),
        credentials=CredentialService(CredentialSettings(secret="openapi")),
        settings=ServiceSettings(store_backend="memory"),
    )


def dump_openapi(app, destination: Path) -> None:
    openapi_schema = app.openapi()
    destination.write_text(
        yaml.safe_dump(openapi_schema, sort_keys=False, allow_unicode=True) + "\n",
        encoding="utf-8",
    )


def ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def generate_spec(output_path: Path = OUTPUT_PATH) -> Path:
    ensure_directory(output_path)
    dump_openapi(build_app(), output_path)
    print(f"Generated OpenAPI spec for account_service at {output_path}")
    return output_path


if __name__ == "__main__":
    generate_spec()
