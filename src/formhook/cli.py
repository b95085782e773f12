from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from pydantic import ValidationError

from .api.models import EncryptedBody
from .crypto.box import generate_box_keypair
from .crypto.submission import decrypt_submission
from .errors import FormhookError
from .settings import decode_key, settings
from .webhooks.header import parse_signature_header
from .webhooks.verify import current_time_ms, verify_signature


def cmd_keygen(args: argparse.Namespace) -> int:
    secret_key, public_key = generate_box_keypair()
    print(json.dumps({"secretKey": secret_key, "publicKey": public_key}, indent=2))
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    try:
        header = parse_signature_header(args.header)
        verify_signature(
            header,
            args.uri or settings.form_post_uri,
            decode_key("public key", args.public_key or settings.form_public_key),
            args.now_ms if args.now_ms is not None else current_time_ms(),
            max_age_ms=settings.signature_max_age_ms,
            future_skew_ms=settings.signature_future_skew_ms,
        )
    except FormhookError as e:
        print(f"FAIL: {e.reason}: {e}", file=sys.stderr)
        return 1
    print(f"OK submission={header.submission_id} form={header.form_id}")
    return 0


def cmd_decrypt(args: argparse.Namespace) -> int:
    src = Path(args.body)
    if not src.exists():
        print(f"Body file not found: {src}", file=sys.stderr)
        return 2
    try:
        body = EncryptedBody.model_validate_json(src.read_bytes())
    except ValidationError:
        print("Body is not a valid webhook payload", file=sys.stderr)
        return 2
    try:
        private_key = decode_key("secret key", args.secret_key or settings.form_secret_key)
        decrypted = decrypt_submission(body, private_key)
    except FormhookError as e:
        print(f"FAIL: {e.reason}: {e}", file=sys.stderr)
        return 1
    out = decrypted.to_json(indent=2)
    if args.out:
        Path(args.out).write_text(out, encoding="utf-8")
        print(f"Wrote {args.out}")
    else:
        print(out)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="formhook",
        description="FormSG webhook verification and decryption utilities",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    p_keygen = sub.add_parser("keygen", help="Generate a recipient (form) key pair")
    p_keygen.set_defaults(func=cmd_keygen)

    p_verify = sub.add_parser("verify", help="Verify an X-FormSG-Signature header")
    p_verify.add_argument("--header", required=True, help="Raw header value (t=...,s=...,f=...,v1=...)")
    p_verify.add_argument("--uri", help="POST URI used in the signature (default: FORM_POST_URI)")
    p_verify.add_argument("--public-key", help="Base64 signing public key (default: FORM_PUBLIC_KEY)")
    p_verify.add_argument("--now-ms", type=int, help="Override current time (epoch ms)")
    p_verify.set_defaults(func=cmd_verify)

    p_decrypt = sub.add_parser("decrypt", help="Decrypt a saved webhook body")
    p_decrypt.add_argument("--body", required=True, help="JSON file with the encrypted webhook body")
    p_decrypt.add_argument("--secret-key", help="Base64 form secret key (default: FORM_SECRET_KEY)")
    p_decrypt.add_argument("--out", help="Write decrypted JSON here instead of stdout")
    p_decrypt.set_defaults(func=cmd_decrypt)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
