"""Application-wide configuration and settings.

Uses ``pydantic-settings`` so values can be overridden via environment
variables prefixed with ``PROFILER_``.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Global settings for the plugin analyzer.

    Attributes:
        app_name: Display name of the application.
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_json: Emit log events as JSON lines instead of the console format.
        host: Interface the API server binds to.
        port: Port the API server listens on.
        reload: Restart the API server when source files change.
        default_blacklist: Directory patterns always skipped by the scanner.
        ignore_files: Per-plugin ignore files honoured by the scanner.
        max_file_size_bytes: Skip files larger than this threshold.
        script_parser: Script extraction strategy (``native`` or ``external``).
        script_extractor_command: Command line of the external extractor;
            the script path is appended as the last argument.
        script_extractor_timeout: Seconds before the external extractor is killed.
        host_path: Plugin location on the host, recorded in the export when
            the analyzer runs inside a container.
        output_dir: Default directory for exported graph documents.
        llm_provider: Description provider (openai, gemini, deepseek, claude, ollama).
        llm_model: Model name sent to the provider.
        llm_api_key: Provider API key.
        llm_base_url: Overrides the provider's default endpoint.
        llm_batch_size: Nodes per description request.
        llm_timeout: Per-request timeout in seconds.
    """

    app_name: str = "Plugin Profiler"
    log_level: str = "INFO"
    log_json: bool = False

    # API server
    host: str = "127.0.0.1"
    port: int = 8000
    reload: bool = False
    default_blacklist: list[str] = [
        "vendor/",
        "node_modules/",
        ".git/",
        ".*/",
    ]
    ignore_files: list[str] = [".gitignore", ".profilerignore"]
    max_file_size_bytes: int = 2_097_152  # 2 MB

    # Script extraction
    script_parser: str = "native"
    script_extractor_command: str = ""
    script_extractor_timeout: float = 30.0

    # Export
    host_path: str = ""
    output_dir: str = "output"

    # Descriptions
    llm_provider: str = "openai"
    llm_model: str = "gpt-4o-mini"
    llm_api_key: str = ""
    llm_base_url: str = ""
    llm_batch_size: int = 25
    llm_timeout: float = 60.0

    model_config = {"env_prefix": "PROFILER_", "env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
