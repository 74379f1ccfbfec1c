"""
ZK Mind CLI - Command-line tooling for players and operators.

Usage:
    zkmind commitment --secret 1,2,3,4 [--salt HEX]   Commit to a secret
    zkmind score SECRET GUESS                          Score a guess
    zkmind public-inputs ...                           Build the public-input vector
    zkmind inspect-blob FILE                           Show how an artifact parses
    zkmind serve [--host H] [--port P]                 Run the HTTP API
"""

import argparse
import sys

from .config import Settings, configure_logging


def parse_code(text: str) -> tuple[int, ...]:
    """'1,2,3,4' or '1234' -> (1, 2, 3, 4)."""
    text = text.strip()
    parts = text.split(",") if "," in text else list(text)
    try:
        return tuple(int(p) for p in parts)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a code: {text!r}")


def parse_hex(text: str) -> bytes:
    text = text.strip().lower()
    if text.startswith("0x"):
        text = text[2:]
    try:
        return bytes.fromhex(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not hex: {text!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="ZK Mind - code-breaking with zero-knowledge feedback",
        prog="zkmind",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default from ZKMIND_LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Commitment command
    commit_parser = subparsers.add_parser("commitment", help="Compute a commitment to a secret code")
    commit_parser.add_argument("--secret", type=parse_code, required=True, help="Secret code, e.g. 1,2,3,4")
    commit_parser.add_argument("--salt", type=parse_hex, help="16-byte salt as hex (random if omitted)")

    # Score command
    score_parser = subparsers.add_parser("score", help="Score a guess against a secret")
    score_parser.add_argument("secret", type=parse_code)
    score_parser.add_argument("guess", type=parse_code)

    # Public inputs command
    pi_parser = subparsers.add_parser("public-inputs", help="Build the public-input vector for a claim")
    pi_parser.add_argument("--session", type=int, required=True, help="Session id")
    pi_parser.add_argument("--guess-id", type=int, required=True)
    pi_parser.add_argument("--commitment", type=parse_hex, required=True, help="32-byte commitment as hex")
    pi_parser.add_argument("--guess", type=parse_code, required=True)
    pi_parser.add_argument("--exact", type=int, required=True)
    pi_parser.add_argument("--partial", type=int, required=True)
    pi_parser.add_argument("--fields", action="store_true", help="One field per line")

    # Inspect blob command
    inspect_parser = subparsers.add_parser("inspect-blob", help="Show how a proof artifact is parsed")
    inspect_parser.add_argument("blob_file", help="Path to the proof artifact")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    configure_logging(args.log_level or settings.log_level)

    if args.command == "commitment":
        return cmd_commitment(args)
    elif args.command == "score":
        return cmd_score(args)
    elif args.command == "public-inputs":
        return cmd_public_inputs(args)
    elif args.command == "inspect-blob":
        return cmd_inspect_blob(args)
    elif args.command == "serve":
        return cmd_serve(args, settings)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_commitment(args):
    """Compute a commitment; prints the salt so the codemaker can keep it."""
    from .proofs.commitment import compute_commitment, commitment_to_decimal, generate_salt

    salt = args.salt if args.salt is not None else generate_salt()
    try:
        commitment = compute_commitment(args.secret, salt)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"commitment: {commitment.hex()}")
    print(f"decimal:    {commitment_to_decimal(commitment)}")
    print(f"salt:       {salt.hex()}")


def cmd_score(args):
    """Score a guess."""
    from .engine_core.rules import is_valid_code, score_guess

    for name, code in (("secret", args.secret), ("guess", args.guess)):
        if not is_valid_code(code):
            print(f"Error: {name} must be 4 distinct digits in 1..6")
            sys.exit(1)

    exact, partial = score_guess(args.secret, args.guess)
    print(f"exact: {exact}")
    print(f"partial: {partial}")


def cmd_public_inputs(args):
    """Print the canonical public-input vector as hex."""
    from .proofs.public_inputs import build_public_inputs, split_fields

    try:
        vector = build_public_inputs(
            args.session, args.guess_id, args.commitment, args.guess, args.exact, args.partial,
        )
    except (TypeError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.fields:
        for field in split_fields(vector):
            print(field.hex())
    else:
        print(vector.hex())


def cmd_inspect_blob(args):
    """Report the header, candidate splits and hash of a proof artifact."""
    from .proofs.blob import (
        ProofBlobError,
        colliding_candidates,
        extract_public_inputs,
        header_field_count,
    )
    from .proofs.gate import proof_hash
    from .proofs.public_inputs import FIELD_SIZE

    try:
        with open(args.blob_file, "rb") as f:
            blob = f.read()
    except FileNotFoundError:
        print(f"Error: File not found: {args.blob_file}")
        sys.exit(1)

    print(f"Size: {len(blob)} bytes")
    print(f"keccak-256: {proof_hash(blob).hex()}")
    try:
        print(f"Header field count: {header_field_count(blob)}")
        public_inputs = extract_public_inputs(blob)
    except ProofBlobError as e:
        print(f"Error: {e}")
        sys.exit(1)

    candidates = colliding_candidates(len(blob))
    print(f"Matching proof sizes: {', '.join(str(c) for c in candidates)}")
    if len(candidates) > 1:
        print(f"Warning: ambiguous, parsed as {candidates[0]} proof fields")
    print(f"Public-input fields: {len(public_inputs) // FIELD_SIZE}")
    for i in range(0, len(public_inputs), FIELD_SIZE):
        print(f"  {public_inputs[i:i + FIELD_SIZE].hex()}")


def cmd_serve(args, settings):
    """Run the HTTP API."""
    from .api.app import run

    run(host=args.host, port=args.port, settings=settings)


if __name__ == "__main__":
    main()
