# Main Entry Point - local vault API server
#
#   passlock                 serve the vault API on 127.0.0.1:8080
#   passlock --create        create a new vault interactively, then exit
#
# Settings come from PASSLOCK_* environment variables (a .env file in the
# current directory is loaded first).

import argparse
import getpass
import logging
import sys

from dotenv import load_dotenv

from . import __version__
from .core import PasslockConfig, configure_audit_logger
from .vault import VaultError, VaultManager


def _create_vault(config: PasslockConfig) -> int:
    password = getpass.getpass("New master password: ")
    confirmation = getpass.getpass("Confirm master password: ")

    with VaultManager.from_config(config) as manager:
        strength = manager.score_strength(password)
        print(f"  Strength: {strength.strength} ({strength.percentage}%)")
        for hint in strength.feedback:
            print(f"    - {hint}")

        try:
            manager.create_vault(password, confirmation)
        except VaultError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            return 1

    print(f"Vault created at {config.vault_path}")
    return 0


def main():
    """Main entry point for Passlock."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Passlock - local password vault session server",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="API host (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="API port (default: 8080)"
    )
    parser.add_argument(
        "--home",
        default=None,
        help="Directory holding the vault and handoff files (default: $PASSLOCK_HOME or ~)"
    )
    parser.add_argument(
        "--create",
        action="store_true",
        help="Create a new vault and exit"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"Passlock v{__version__}"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    config = PasslockConfig.from_env(home=args.home)
    configure_audit_logger(config.audit_dir)

    if args.create:
        sys.exit(_create_vault(config))

    import uvicorn
    from .api.main import create_app
    from .api.security import generate_session_token

    token = generate_session_token()
    app = create_app(config, session_token=token)

    print("=" * 60)
    print(f"  Passlock v{__version__}")
    print(f"  Vault:   {config.vault_path}")
    print(f"  API:     http://{args.host}:{args.port}/api/vault")
    print(f"  Token:   {token}  (send as X-Session-Token)")
    print("  Press Ctrl+C to stop")
    print("=" * 60)

    try:
        uvicorn.run(app, host=args.host, port=args.port, log_level="info")
    except KeyboardInterrupt:
        print("\n\nShutting down...")


if __name__ == "__main__":
    main()
