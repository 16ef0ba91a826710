from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Template generation
    HAL_FORMS_TEMPLATE_CACHE_SIZE: int = 256
    HAL_FORMS_MAX_TEMPLATE_DEPTH: int = 8
    HAL_FORMS_DEFAULT_CONTENT_TYPE: str = "application/json"

    # Naming: property names follow the JSON wire casing, option prompts keep
    # the enum member name unless told otherwise
    HAL_FORMS_CAMEL_CASE_NAMES: bool = True
    HAL_FORMS_CAMEL_CASE_OPTION_PROMPTS: bool = False

    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = False

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore"
    }


settings = Settings()
