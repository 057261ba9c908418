from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
	model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

	APP_NAME: str = Field(default="AppForge API")
	DEBUG: bool = Field(default=False)
	API_PREFIX: str = Field(default="/api")
	CORS_ORIGINS: list[str] = Field(default=["*"])

	# Storage: "memory" keeps records for the process lifetime, "database" uses DATABASE_URL
	STORAGE_BACKEND: str = Field(default="memory")
	DATABASE_URL: str = Field(default="")
	DATABASE_CREATE_ALL: bool = Field(default=False)

	# Auth / JWT
	JWT_SECRET: str = Field(default="dev-change-me")
	JWT_ALGORITHM: str = Field(default="HS256")
	ACCESS_TOKEN_EXPIRES_MINUTES: int = Field(default=60)

	# Gemini
	GEMINI_API_KEY: str = Field(default="")
	GEMINI_MODEL: str = Field(default="gemini-2.5-pro")
	GEMINI_FAST_MODEL: str = Field(default="gemini-2.5-flash")

	# Credits
	GENERATION_CREDIT_COST: int = Field(default=10)
	DEFAULT_USER_CREDITS: int = Field(default=100)

	# PayPal
	PAYPAL_CLIENT_ID: str = Field(default="")
	PAYPAL_CLIENT_SECRET: str = Field(default="")
	PAYPAL_ENVIRONMENT: str = Field(default="sandbox")
	PAYPAL_TIMEOUT: float = Field(default=30.0)

	# Azure Monitor / Application Insights
	AZURE_MONITOR_CONN_STR: str = Field(default="")
	ENABLE_APP_INSIGHTS: bool = Field(default=True)
	SAMPLING_RATIO: float = Field(default=1.0)


settings = Settings()
