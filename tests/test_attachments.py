import base64
import json

import httpx
import pytest
from nacl.public import PrivateKey

from formhook.api.models import DecryptedSubmission
from formhook.crypto.attachments import (
    decrypt_attachment,
    decrypt_attachments,
    download_attachment,
    parse_attachment_envelope,
    safe_filename,
)
from formhook.crypto.box import seal_box
from formhook.errors import AttachmentError, AuthenticationFailed, EnvelopeFormatError


def _b64(b: bytes) -> str:
    return base64.b64encode(b).decode()


def _attachment_doc(pk: bytes, content: bytes) -> dict:
    env = seal_box(content, pk)
    return {
        "encryptedFile": {
            "submissionPublicKey": _b64(env.sender_public_key),
            "nonce": _b64(env.nonce),
            "binary": _b64(env.ciphertext),
        }
    }


def _fake_get(docs: dict):
    def get(url, timeout=None):
        req = httpx.Request("GET", url)
        if url not in docs:
            return httpx.Response(404, request=req)
        return httpx.Response(200, content=json.dumps(docs[url]).encode(), request=req)

    return get


def _submission(fields) -> DecryptedSubmission:
    return DecryptedSubmission.model_validate(
        {
            "formId": "form",
            "submissionId": "sub",
            "decryptedContent": fields,
            "version": 1,
            "created": "2020-02-24T15:32:38.788Z",
        }
    )


def test_decrypt_attachment_from_json():
    sk = PrivateKey.generate()
    doc = _attachment_doc(bytes(sk.public_key), b"%PDF-1.4 ...")
    env = parse_attachment_envelope(json.dumps(doc))
    assert decrypt_attachment(env, bytes(sk)) == b"%PDF-1.4 ..."
    assert parse_attachment_envelope(doc) == env


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        {"encryptedFile": {"nonce": "AAAA", "binary": "AAAA"}},
        {"file": {}},
        {"encryptedFile": {"submissionPublicKey": "A!", "nonce": "AAAA", "binary": "AAAA"}},
    ],
)
def test_malformed_attachment_envelope(raw):
    with pytest.raises(EnvelopeFormatError):
        parse_attachment_envelope(raw)


def test_download_attachment():
    sk = PrivateKey.generate()
    docs = {"https://files.example/a": _attachment_doc(bytes(sk.public_key), b"file-bytes")}
    get = _fake_get(docs)
    assert download_attachment("https://files.example/a", bytes(sk), _get_func=get) == b"file-bytes"
    with pytest.raises(httpx.HTTPStatusError):
        download_attachment("https://files.example/missing", bytes(sk), _get_func=get)


def test_download_attachment_uses_httpx_get(monkeypatch):
    sk = PrivateKey.generate()
    docs = {"https://files.example/a": _attachment_doc(bytes(sk.public_key), b"abc")}
    monkeypatch.setattr(httpx, "get", _fake_get(docs))
    assert download_attachment("https://files.example/a", bytes(sk)) == b"abc"


def test_each_attachment_decrypted_independently():
    sk = PrivateKey.generate()
    other = PrivateKey.generate()
    docs = {
        "u1": _attachment_doc(bytes(sk.public_key), b"one"),
        "u2": _attachment_doc(bytes(other.public_key), b"two"),  # wrong recipient
        "u4": _attachment_doc(bytes(sk.public_key), b"four"),
    }
    sub = _submission(
        [
            {"_id": "a1", "question": "q", "fieldType": "attachment", "answer": "one.txt"},
            {"_id": "a2", "question": "q", "fieldType": "attachment", "answer": "two.txt"},
            {"_id": "a3", "question": "q", "fieldType": "attachment", "answer": "three.txt"},  # no url
            {"_id": "t1", "question": "q", "fieldType": "textfield", "answer": "text"},
            {"_id": "a4", "question": "q", "fieldType": "attachment", "answer": "../../etc/four.txt"},
        ]
    )
    urls = {"a1": "u1", "a2": "u2", "a4": "u4", "t1": "u1"}
    get = _fake_get(docs)
    results = decrypt_attachments(
        sub, urls, bytes(sk), fetch=lambda url, key: download_attachment(url, key, _get_func=get)
    )
    assert list(results) == ["a1", "a2", "a4"]
    assert results["a1"].ok and results["a1"].content == b"one"
    assert results["a4"].content == b"four"
    assert results["a4"].filename == "four.txt"
    failed = results["a2"]
    assert not failed.ok and failed.content is None
    assert isinstance(failed.error, AttachmentError)
    assert failed.error.field_id == "a2"
    assert isinstance(failed.error.cause, AuthenticationFailed)


def test_http_failure_recorded_per_field():
    sk = PrivateKey.generate()
    sub = _submission([{"_id": "a1", "question": "q", "fieldType": "attachment", "answer": "x.bin"}])
    get = _fake_get({})
    results = decrypt_attachments(
        sub, {"a1": "gone"}, bytes(sk), fetch=lambda url, key: download_attachment(url, key, _get_func=get)
    )
    assert isinstance(results["a1"].error.cause, httpx.HTTPStatusError)


@pytest.mark.parametrize(
    "name,expected",
    [("cv.pdf", "cv.pdf"), ("../../x.txt", "x.txt"), ("..\\..\\y.txt", "y.txt"), ("..", "attachment"), ("", "attachment")],
)
def test_safe_filename(name, expected):
    assert safe_filename(name) == expected


def test_invalid_url_does_not_stop_other_attachments():
    sk = PrivateKey.generate()
    docs = {"https://files.example/b": _attachment_doc(bytes(sk.public_key), b"bee")}
    sub = _submission(
        [
            {"_id": "a1", "question": "q", "fieldType": "attachment", "answer": "a.bin"},
            {"_id": "a2", "question": "q", "fieldType": "attachment", "answer": "b.bin"},
        ]
    )
    get = _fake_get(docs)

    def fetch(url, key):
        if url in docs:
            return download_attachment(url, key, _get_func=get)
        # real httpx rejects the URL before any network access
        return download_attachment(url, key)

    results = decrypt_attachments(sub, {"a1": "http://[::1", "a2": "https://files.example/b"}, bytes(sk), fetch=fetch)
    assert isinstance(results["a1"].error, AttachmentError)
    assert isinstance(results["a1"].error.cause, httpx.InvalidURL)
    assert results["a2"].content == b"bee"
