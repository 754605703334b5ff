"""E2E configuration loaded from environment variables."""

import os
from dataclasses import dataclass
from typing import Mapping

from azure.kusto.data import KustoConnectionStringBuilder

from ingestcheck.errors import MissingConfigurationError
from ingestcheck.verifier import VerificationPolicy

REQUIRED_VARIABLES = (
    "TEST_DATABASE",
    "APP_ID",
    "APP_KEY",
    "TENANT_ID",
    "ENGINE_CONNECTION_STRING",
)

DEFAULT_STATUS_TIMEOUT = 180.0


def derive_dm_connection_string(engine_cs: str) -> str:
    """The data management endpoint lives beside the engine: https://x -> https://ingest-x."""
    return engine_cs.replace("//", "//ingest-", 1)


@dataclass(frozen=True)
class E2EConfig:
    database: str
    app_id: str
    app_key: str
    tenant_id: str
    engine_connection_string: str
    dm_connection_string: str
    verify_attempts: int = 18
    verify_delay: float = 10.0
    status_timeout: float = DEFAULT_STATUS_TIMEOUT

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "E2EConfig":
        """Build a config from the environment.

        Raises MissingConfigurationError naming every required variable that is unset or empty.
        """
        env = os.environ if environ is None else environ
        missing = [name for name in REQUIRED_VARIABLES if not env.get(name)]
        if missing:
            raise MissingConfigurationError(missing)

        engine_cs = env["ENGINE_CONNECTION_STRING"]
        return cls(
            database=env["TEST_DATABASE"],
            app_id=env["APP_ID"],
            app_key=env["APP_KEY"],
            tenant_id=env["TENANT_ID"],
            engine_connection_string=engine_cs,
            dm_connection_string=env.get("DM_CONNECTION_STRING")
            or derive_dm_connection_string(engine_cs),
            verify_attempts=int(env.get("VERIFY_ATTEMPTS", 18)),
            verify_delay=float(env.get("VERIFY_DELAY_SECONDS", 10.0)),
            status_timeout=float(env.get("STATUS_TIMEOUT_SECONDS", DEFAULT_STATUS_TIMEOUT)),
        )

    def _kcsb(self, connection_string: str) -> KustoConnectionStringBuilder:
        return KustoConnectionStringBuilder.with_aad_application_key_authentication(
            connection_string, self.app_id, self.app_key, self.tenant_id
        )

    def engine_kcsb(self) -> KustoConnectionStringBuilder:
        return self._kcsb(self.engine_connection_string)

    def dm_kcsb(self) -> KustoConnectionStringBuilder:
        return self._kcsb(self.dm_connection_string)

    def verification_policy(self) -> VerificationPolicy:
        return VerificationPolicy(attempts=self.verify_attempts, delay=self.verify_delay)
