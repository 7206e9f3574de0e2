import pytest

from mockserve.transformers import (
    DecodeBase64ValueTransformer,
    ToLowercaseTransformer,
    TransformError,
)


def test_base64_decode_transformer():
    assert DecodeBase64ValueTransformer().transform("dGVzdA==") == "test"


def test_base64_decode_transformer_error():
    with pytest.raises(TransformError):
        DecodeBase64ValueTransformer().transform("xÿ")


def test_to_lowercase_transformer():
    assert ToLowercaseTransformer().transform("HeLlO") == "hello"