"""
Provider chains for exam generation.

Profiles are defined in YAML (config/provider_profiles.yaml). Each profile
names an ordered list of provider ids (Gemini model names) and the sampling
parameters used with them. GenerationClient walks the chain in order.

Example:
    profiles:
      default:
        description: "Fast models first"
        providers: [gemini-2.0-flash, gemini-1.5-pro]
        temperature: 0.7
        max_tokens: 4096
"""

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from config import Config

logger = logging.getLogger(__name__)


@dataclass
class ProviderChain:
    """Ordered providers plus sampling parameters for one profile."""

    name: str
    description: str = ""
    providers: List[str] = field(default_factory=list)
    temperature: float = Config.DEFAULT_TEMPERATURE
    max_tokens: int = Config.DEFAULT_MAX_TOKENS

    def __post_init__(self):
        """Validate chain configuration."""
        if not isinstance(self.providers, list) or not all(
            isinstance(p, str) and p.strip() for p in self.providers
        ):
            raise ValueError(f"Profile '{self.name}': providers must be a list of non-empty names")
        if self.max_tokens <= 0:
            raise ValueError(f"Profile '{self.name}': max_tokens must be positive")


class ProviderRouter:
    """
    Loads provider chains from YAML profiles.

    Thread Safety:
        - Profile loading is protected by a lock

    Usage:
        router = ProviderRouter()
        chain = router.get_chain("default")
        for provider in chain.providers:
            ...
    """

    def __init__(self, profiles_path: Optional[Path] = None):
        """Initialize provider router.

        Args:
            profiles_path: Path to provider profiles YAML file.
                          Defaults to Config.PROVIDER_PROFILES_PATH
        """
        self.profiles_path = Path(profiles_path or Config.PROVIDER_PROFILES_PATH)
        self.profiles: Dict[str, ProviderChain] = {}
        self._lock = threading.RLock()

        self._load_profiles()

        logger.info(f"ProviderRouter initialized with {len(self.profiles)} profiles")

    def _load_profiles(self):
        """Load provider profiles from YAML configuration.

        Raises:
            FileNotFoundError: If profiles file not found
            ValueError: If profiles file is invalid
        """
        with self._lock:
            if not self.profiles_path.exists():
                raise FileNotFoundError(
                    f"Provider profiles configuration not found: {self.profiles_path}\n"
                    f"Please create the configuration file with profile definitions."
                )

            try:
                with open(self.profiles_path, "r") as f:
                    config_data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Failed to parse provider profiles YAML: {e}")

            if not isinstance(config_data, dict) or not isinstance(config_data.get("profiles"), dict):
                raise ValueError("Invalid profiles configuration: missing 'profiles' key")

            profiles = {}
            for profile_name, profile_data in config_data["profiles"].items():
                profile_data = profile_data or {}
                try:
                    profiles[profile_name] = ProviderChain(
                        name=profile_name,
                        description=profile_data.get("description", ""),
                        providers=list(profile_data.get("providers") or []),
                        temperature=float(profile_data.get("temperature", Config.DEFAULT_TEMPERATURE)),
                        max_tokens=int(profile_data.get("max_tokens", Config.DEFAULT_MAX_TOKENS)),
                    )
                except (TypeError, AttributeError) as e:
                    raise ValueError(f"Invalid profile '{profile_name}': {e}")

            self.profiles = profiles
            logger.info(f"Loaded {len(self.profiles)} provider profiles from {self.profiles_path}")

    def reload_profiles(self):
        """Reload profiles from configuration file."""
        logger.info("Reloading provider profiles...")
        self._load_profiles()

    def get_chain(self, profile_name: Optional[str] = None) -> ProviderChain:
        """Get the provider chain for a profile.

        Args:
            profile_name: Profile name, defaults to Config.PROVIDER_PROFILE

        Returns:
            ProviderChain

        Raises:
            ValueError: If profile not found
        """
        profile_name = profile_name or Config.PROVIDER_PROFILE
        if profile_name not in self.profiles:
            available = ", ".join(self.profiles.keys())
            raise ValueError(f"Profile '{profile_name}' not found. Available profiles: {available}")

        chain = self.profiles[profile_name]
        logger.info(f"[ROUTING] Profile: {profile_name}, Providers: {', '.join(chain.providers) or '(none)'}")
        return chain

    def list_profiles(self) -> List[str]:
        """List all available profile names."""
        return list(self.profiles.keys())

    def get_profile_info(self, profile_name: str) -> Dict[str, Any]:
        """Get detailed information about a profile.

        Raises:
            ValueError: If profile not found
        """
        chain = self.get_chain(profile_name)
        return {
            "name": chain.name,
            "description": chain.description,
            "providers": list(chain.providers),
            "temperature": chain.temperature,
            "max_tokens": chain.max_tokens,
        }

    def validate_profiles(self) -> Dict[str, List[str]]:
        """Validate all profiles and return any issues.

        Returns:
            Dict mapping profile names to list of validation issues.
            Empty list means profile is valid.
        """
        issues = {}
        for profile_name, chain in self.profiles.items():
            profile_issues = []
            if chain.providers and not Config.GEMINI_API_KEY:
                profile_issues.append("GEMINI_API_KEY is not set; the rule-based generator will be used")
            duplicates = sorted({p for p in chain.providers if chain.providers.count(p) > 1})
            for provider in duplicates:
                profile_issues.append(f"Provider '{provider}' is listed more than once")
            issues[profile_name] = profile_issues
        return issues
