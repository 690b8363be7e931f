from __future__ import annotations

import argparse

from backend.app.config import load_settings
from backend.app.services.credential_store import CredentialStore, OAuthClientConfig


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Print the YouTube OAuth consent URL for the configured client.",
    )
    parser.add_argument(
        "--base-url",
        type=str,
        default="http://localhost:8000",
        help="Where the gateway is served; used to print the follow-up status URL.",
    )
    return parser.parse_args()


def build_consent_instructions(store: CredentialStore, *, base_url: str) -> list[str]:
    status_url = f"{base_url.rstrip('/')}/auth/youtube/tokens"
    return [
        "Open this URL in a browser and grant access:",
        store.authorization_url(),
        f"Google redirects back to: {store.client_config.redirect_uri}",
        f"Check the result at: {status_url}",
    ]


def main() -> None:
    args = _parse_args()
    settings = load_settings()
    store = CredentialStore(OAuthClientConfig.from_settings(settings))

    for line in build_consent_instructions(store, base_url=args.base_url):
        print(line)


if __name__ == "__main__":
    main()
