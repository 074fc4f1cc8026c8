import logging

from dataclasses import dataclass
from pathlib import Path
from typing import List, Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]

# Cartridge VRF provider on Sepolia
DEFAULT_VRF_PROVIDER_ADDRESS = "0x051fea4450da9d6aee758bdeba88b2f665bcbf549d2c61421aa724e9ac0ced8f"
PLACEHOLDER_ROULETTE_ADDRESS = "YOUR_ROULETTE_CONTRACT_ADDRESS"

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Required configuration is missing or invalid."""
    pass


@dataclass(frozen=True)
class RunConfig:
    """Explicit options handed to the entry operation."""
    rpc_endpoint: str
    poll_interval_ms: int = 5000
    timeout_ms: int = 180000
    fee_mode: str = "L1"
    fee_overhead_percent: int = 50
    request_timeout_seconds: float = 30.0


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    log_level: str = Field(default="INFO", description="Logging level")

    # Node
    rpc_url: str = Field(default="", description="Starknet JSON-RPC endpoint")
    rpc_request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Per-request HTTP timeout for node calls",
    )

    # Operator account
    operator_address: str = Field(default="", description="Account contract that sends the transaction")
    operator_private_key: str = Field(
        default="",
        description="Key material handed to the signer factory",
        validation_alias=AliasChoices("operator_private_key", "pk", "PK", "OPERATOR_PRIVATE_KEY"),
    )
    signer: str = Field(
        default="",
        description="Import path of a signer factory, 'package.module:factory'",
    )

    # Contracts
    roulette_contract_address: str = Field(
        default=PLACEHOLDER_ROULETTE_ADDRESS,
        description="Deployed roulette game contract",
    )
    vrf_provider_address: str = Field(
        default=DEFAULT_VRF_PROVIDER_ADDRESS,
        description="VRF provider contract that serves request_random",
    )
    vrf_source: Literal["nonce", "game"] = Field(
        default="nonce",
        description="Seed source for request_random: account nonce or current game id",
    )

    # Transaction lifecycle
    poll_interval_ms: int = Field(default=5000, gt=0, description="Receipt polling interval")
    timeout_ms: int = Field(default=180000, gt=0, description="Confirmation deadline")
    fee_mode: Literal["L1", "L2"] = Field(default="L1", description="Fee data-availability mode")
    fee_overhead_percent: int = Field(
        default=50,
        ge=0,
        description="Headroom added to estimated resource bounds",
    )
    check_bet_limits: bool = Field(
        default=True,
        description="Compare bet amounts with get_min_bet/get_max_bet before estimating",
    )

    @property
    def has_roulette_address(self) -> bool:
        return bool(self.roulette_contract_address) and (
            self.roulette_contract_address != PLACEHOLDER_ROULETTE_ADDRESS
        )

    def missing_variables(self) -> List[str]:
        missing: List[str] = []
        if not self.rpc_url:
            missing.append("RPC_URL")
        if not self.operator_address:
            missing.append("OPERATOR_ADDRESS")
        if not self.operator_private_key:
            missing.append("OPERATOR_PRIVATE_KEY")
        if not self.signer:
            missing.append("SIGNER")
        if not self.has_roulette_address:
            missing.append("ROULETTE_CONTRACT_ADDRESS")
        return missing

    def validate_environment(self) -> None:
        if self.roulette_contract_address == PLACEHOLDER_ROULETTE_ADDRESS:
            logger.warning(
                "ROULETTE_CONTRACT_ADDRESS is not set; the placeholder cannot be used on-chain"
            )
        missing = self.missing_variables()
        if missing:
            raise ConfigurationError(f"Missing environment variables: {', '.join(missing)}")

    def to_run_config(self) -> RunConfig:
        return RunConfig(
            rpc_endpoint=self.rpc_url,
            poll_interval_ms=self.poll_interval_ms,
            timeout_ms=self.timeout_ms,
            fee_mode=self.fee_mode,
            fee_overhead_percent=self.fee_overhead_percent,
            request_timeout_seconds=self.rpc_request_timeout_seconds,
        )


# Global settings instance
settings = Settings()
