"""
Credshare Command Line Interface.

Provides commands for creating an identity, issuing share links, inspecting
tokens, listing indexed credentials and running the redemption server.
"""

import argparse
import asyncio
import json
import logging
import os
import sys

from credshare import config
from credshare.errors import ShareAccessError
from credshare.signature import recover_address
from credshare.signer import LocalAccountSigner
from credshare.store import JsonFileCredentialStore, credential_status, format_address
from credshare.token import decode_token, issue_share_token


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s'
    )


def cmd_init(args: argparse.Namespace) -> int:
    """Generate a new secp256k1 identity."""
    signer = LocalAccountSigner.generate()

    if args.env:
        print(f"export CREDSHARE_PRIVATE_KEY='{signer.private_key_hex}'")
        print(f"# Address: {signer.address}", file=sys.stderr)
    else:
        print("🔑 NEW IDENTITY GENERATED\n")
        print(f"Address: {signer.address}")
        print("\n--- PRIVATE KEY (Keep Secret / Set as Env Var) ---")
        print(signer.private_key_hex)

    return 0


def cmd_share(args: argparse.Namespace) -> int:
    """Issue a signed share link for a credential."""
    private_key = args.key or os.environ.get('CREDSHARE_PRIVATE_KEY')

    if not private_key:
        print("Error: Missing private key. Set CREDSHARE_PRIVATE_KEY or use --key", file=sys.stderr)
        return 1

    try:
        signer = LocalAccountSigner(private_key=private_key)
        token = issue_share_token(signer, args.credential_id, max_views=args.max_views)
    except (ValueError, ShareAccessError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps({
            "token": token.encode(),
            "url": token.share_url(args.base_url),
            "owner": signer.address,
            "payload": token.payload.to_dict(),
        }, indent=2))
    elif args.token_only:
        print(token.encode())
    else:
        print(token.share_url(args.base_url))

    return 0


def cmd_inspect(args: argparse.Namespace) -> int:
    """Decode a share token and recover its signer."""
    try:
        share = decode_token(args.token)
        owner = recover_address(share.payload.canonical_bytes(), share.signature)
    except ShareAccessError as e:
        if args.json:
            print(json.dumps({"valid": False, "error": e.message, "code": e.code}))
        else:
            print(f"❌ INVALID ({e.code}): {e.message}")
        return 1

    if args.json:
        print(json.dumps({
            "valid": True,
            "owner": owner,
            "payload": share.payload.to_dict(),
        }, indent=2))
    else:
        print("✅ SIGNATURE VALID")
        print(f"   Owner:      {owner}")
        print(f"   Credential: {share.payload.credential_id}")
        print(f"   Max views:  {share.payload.max_views}")
        print(f"   Nonce:      {share.payload.nonce}")

    return 0


def cmd_list(args: argparse.Namespace) -> int:
    """List indexed credentials, optionally only those of one owner."""
    store = JsonFileCredentialStore(args.db or config.DB_PATH)

    try:
        if args.owner:
            credentials = asyncio.run(store.get_credentials_by_owner(args.owner))
        else:
            credentials = asyncio.run(store.list_credentials())
    except (OSError, ValueError, KeyError) as e:
        print(f"Error: Cannot read {store.path}: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps([
            {**c.to_dict(), "status": credential_status(c.expiration_date)}
            for c in credentials
        ], indent=2))
        return 0

    if not credentials:
        print("No credentials indexed.")
        return 0

    for c in credentials:
        status = "Revoked" if c.revoked else credential_status(c.expiration_date)
        print(f"{c.id:>6}  {format_address(c.student_address)}  {status:<13}  {c.course_name} ({c.issuer_name})")

    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the redemption server."""
    from credshare.server import main as serve

    serve(host=args.host, port=args.port)
    return 0


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog='credshare',
        description='Credshare CLI - Signed, view-limited credential sharing links'
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose output')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # init command
    p_init = subparsers.add_parser('init', help='Generate a new identity')
    p_init.add_argument('--env', action='store_true', help='Output as environment variables')

    # share command
    p_share = subparsers.add_parser('share', help='Issue a share link for a credential')
    p_share.add_argument('credential_id', help='Identifier of the credential to share')
    p_share.add_argument('--max-views', type=int, default=1, help='Number of views allowed')
    p_share.add_argument('--key', help='Private key (hex)')
    p_share.add_argument('--base-url', help='Viewer base URL')
    p_share.add_argument('--token-only', action='store_true', help='Print only the encoded token')
    p_share.add_argument('--json', action='store_true', help='Output as JSON')

    # inspect command
    p_inspect = subparsers.add_parser('inspect', help='Decode a token and recover its signer')
    p_inspect.add_argument('token', help='The encoded share token')
    p_inspect.add_argument('--json', action='store_true', help='Output as JSON')

    # list command
    p_list = subparsers.add_parser('list', help='List indexed credentials')
    p_list.add_argument('--owner', help='Only credentials owned by this address')
    p_list.add_argument('--db', help='Credential store path (default: CREDSHARE_DB_PATH)')
    p_list.add_argument('--json', action='store_true', help='Output as JSON')

    # serve command
    p_serve = subparsers.add_parser('serve', help='Run the redemption server')
    p_serve.add_argument('--host', help='Bind address')
    p_serve.add_argument('--port', type=int, help='TCP port')

    args = parser.parse_args()

    setup_logging(args.verbose)

    if args.command == 'init':
        return cmd_init(args)
    elif args.command == 'share':
        return cmd_share(args)
    elif args.command == 'inspect':
        return cmd_inspect(args)
    elif args.command == 'list':
        return cmd_list(args)
    elif args.command == 'serve':
        return cmd_serve(args)
    else:
        parser.print_help()
        return 0


if __name__ == '__main__':
    sys.exit(main())
