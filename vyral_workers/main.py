"""Main module entrypoint for local runtime execution.

This module validates startup configuration and launches the FastAPI service
or runs one operation from the command line.
"""

import argparse
import json

import uvicorn

from vyral_workers.bootstrap import bootstrap_create_application, bootstrap_create_runtime
from vyral_workers.config import config_load_settings
from vyral_workers.db import SQLAlchemyResultCacheStore, db_create_engine
from vyral_workers.jobs import InvalidRequestError, UnknownOperationError


def main() -> None:
    """Run selected runtime command with validated startup configuration.

    Returns:
        None: This function does not return a runtime value.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
        SystemExit: Raised with status 1 when an operation fails or input is invalid.
    """

    argument_parser = argparse.ArgumentParser(description="Vyral workers runtime entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="api",
        choices=("api", "run-operation", "cache-purge"),
        help="Runtime command: `api` starts server, `run-operation` executes one operation and prints its "
        "envelope, `cache-purge` deletes expired rows from the database cache",
        type=str,
    )
    argument_parser.add_argument(
        "--operation",
        dest="operation_name",
        type=str,
        help="Operation name for `run-operation`, e.g. `strategy`",
    )
    argument_parser.add_argument(
        "--payload",
        dest="payload",
        type=str,
        default="{}",
        help="JSON request body for `run-operation`",
    )
    parsed_arguments = argument_parser.parse_args()

    if parsed_arguments.command == "run-operation":
        raise SystemExit(main_run_operation(parsed_arguments.operation_name, parsed_arguments.payload))

    if parsed_arguments.command == "cache-purge":
        settings = config_load_settings()
        if settings.cache_backend != "database":
            print("cache-purge requires CACHE_BACKEND=database")
            raise SystemExit(1)
        cache_store = SQLAlchemyResultCacheStore(engine=db_create_engine(database_url=settings.database_url))
        print(f"purged_rows={cache_store.db_result_cache_purge_expired()}")
        return

    settings = config_load_settings()
    application = bootstrap_create_application()
    uvicorn.run(
        application,
        host=settings.application_host,
        port=settings.application_port,
    )


def main_run_operation(operation_name: str | None, payload_text: str) -> int:
    """Execute one operation and print its outcome envelope.

    Args:
        operation_name: Registered operation name.
        payload_text: JSON request body.

    Returns:
        int: Process exit code, 0 for completed outcomes.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
    """

    if not operation_name:
        print("--operation is required for run-operation")
        return 1
    try:
        payload = json.loads(payload_text)
    except json.JSONDecodeError as error:
        print(f"--payload is not valid JSON: {error}")
        return 1

    runtime = bootstrap_create_runtime()
    try:
        job_request = runtime.orchestrator.job_build_request(operation_name, payload)
        outcome = runtime.orchestrator.job_execute(job_request)
    except (InvalidRequestError, UnknownOperationError) as error:
        print(json.dumps({"error": str(error)}))
        return 1
    finally:
        runtime.runtime_close()

    print(json.dumps(outcome.outcome_to_envelope(), ensure_ascii=False))
    return 0 if outcome.outcome_is_completed() else 1


if __name__ == "__main__":
    main()
