"""Unit tests for the upload-without-length rule."""

from pathlib import Path

from sdklint.context import FileContext
from sdklint.parser import create_parser, parse_bytes
from sdklint.rules.upload_length import UploadWithoutLengthRule

HEADER = b"""package com.example;

import com.azure.core.util.BinaryData;
import com.azure.storage.blob.BlobClient;
import com.azure.storage.blob.models.AccessTier;
import com.azure.storage.blob.options.BlobParallelUploadOptions;
import java.io.File;
import java.io.InputStream;

"""


def _run_rule(statements: bytes) -> list:
    body = (
        b"public class Uploader {\n"
        b"    public void store(BlobClient client, InputStream data, long length, int size, File file, AccessTier tier) {\n"
        + statements
        + b"    }\n"
        b"}\n"
    )
    source = HEADER + body
    tree = parse_bytes(source, parser=create_parser())
    ctx = FileContext(path=Path("Uploader.java"), source=source, tree=tree)
    return UploadWithoutLengthRule().run(ctx, None)


def test_upload_with_length_is_compliant():
    assert _run_rule(b"        client.upload(data, length);\n") == []


def test_upload_without_length_is_reported():
    findings = _run_rule(b"        client.upload(BinaryData.fromString(\"hello\"));\n")
    assert len(findings) == 1
    assert findings[0].rule_id == "upload-without-length"
    assert findings[0].location.snippet == 'client.upload(BinaryData.fromString("hello"))'
    assert findings[0].message.startswith("Azure Storage upload API without length parameter detected.")


def test_length_followed_by_other_arguments_is_compliant():
    assert _run_rule(b"        client.upload(data, length, true);\n") == []


def test_int_size_is_not_a_length():
    assert len(_run_rule(b"        client.upload(data, size);\n")) == 1


def test_long_literal_is_a_length():
    assert _run_rule(b"        client.upload(data, 1024L);\n") == []


def test_length_from_library_call():
    assert _run_rule(b"        client.upload(data, file.length());\n") == []


def test_options_constructed_with_length():
    assert _run_rule(
        b"        client.uploadWithResponse(new BlobParallelUploadOptions(data, length), null, null);\n"
    ) == []


def test_options_chain_starting_from_constructor_with_length():
    assert _run_rule(
        b"        client.uploadWithResponse(new BlobParallelUploadOptions(data, 1024L).setTier(tier), null, null);\n"
    ) == []


def test_options_without_length_are_reported():
    findings = _run_rule(
        b"        client.uploadWithResponse(new BlobParallelUploadOptions(data).setTier(tier), null, null);\n"
    )
    assert len(findings) == 1


def test_other_methods_are_ignored():
    assert _run_rule(b"        client.downloadStream(null);\n") == []
