import os

REQUIRED = {
    "local": [],
    "remote": ["GITHUB_TOKEN"],
}


def validate_env(variant: str = "local"):
    missing = [v for v in REQUIRED.get(variant, []) if not os.getenv(v)]
    if missing:
        raise RuntimeError(f"Missing environment variables: {missing}")
