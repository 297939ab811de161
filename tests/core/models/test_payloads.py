import pytest
from pydantic import ValidationError

from core.models.payloads import (
    CreateImagePayload,
    ReplaceImagePayload,
    UpdateImagePayload,
    sniff_content_type,
)

JPEG_BASE64 = "/9j/4AAQSkZJRgABAQAAAQABAAD/2wBDAAgGBgcGBQgHBwcJCQgKDBQNDAsLDBkSEw8UHRofHh0aHBwgJC4nICIsIxwcKDcpLDAxNDQ0Hyc5PTgyPC4zNDL/wAALCAABAAEBAREA/8QAFAABAAAAAAAAAAAAAAAAAAAACf/EABQQAQAAAAAAAAAAAAAAAAAAAAD/2gAIAQEAAD8AfwD/2Q=="


class TestCreateImagePayload:
    def test_valid_png(self, png_base64) -> None:
        payload = CreateImagePayload.model_validate(
            {"data": png_base64, "contentType": "image/png", "description": "A dot"}
        )

        assert payload.content_type == "image/png"
        assert payload.to_upstream() == {
            "data": png_base64,
            "contentType": "image/png",
            "description": "A dot",
        }

    def test_valid_jpeg_without_description(self) -> None:
        payload = CreateImagePayload.model_validate(
            {"data": JPEG_BASE64, "contentType": "image/jpeg"}
        )

        assert payload.description is None

    def test_valid_gif(self, gif_base64) -> None:
        payload = CreateImagePayload.model_validate({"data": gif_base64, "contentType": "image/gif"})

        assert payload.content_type == "image/gif"

    def test_unsupported_content_type(self, png_base64) -> None:
        with pytest.raises(ValidationError, match="Invalid content type"):
            CreateImagePayload.model_validate({"data": png_base64, "contentType": "image/webp"})

    def test_data_not_matching_content_type(self, png_base64) -> None:
        with pytest.raises(ValidationError, match="contentType"):
            CreateImagePayload.model_validate({"data": png_base64, "contentType": "image/gif"})

    def test_invalid_base64(self) -> None:
        with pytest.raises(ValidationError, match="base64"):
            CreateImagePayload.model_validate({"data": "@@@@", "contentType": "image/png"})

    def test_unknown_image_bytes(self) -> None:
        with pytest.raises(ValidationError, match="Unsupported or unknown image type"):
            CreateImagePayload.model_validate({"data": "aGVsbG8=", "contentType": "image/png"})

    def test_empty_data(self) -> None:
        with pytest.raises(ValidationError):
            CreateImagePayload.model_validate({"data": "", "contentType": "image/png"})

    def test_description_limit(self, png_base64) -> None:
        CreateImagePayload.model_validate(
            {"data": png_base64, "contentType": "image/png", "description": "x" * 300}
        )

        with pytest.raises(ValidationError):
            CreateImagePayload.model_validate(
                {"data": png_base64, "contentType": "image/png", "description": "x" * 301}
            )


class TestReplaceImagePayload:
    def test_omitted_description_clears_it(self) -> None:
        payload = ReplaceImagePayload.model_validate({"contentType": "image/png"})

        assert payload.changes() == {"content_type": "image/png", "description": None}
        assert payload.to_upstream() == {"contentType": "image/png", "description": None}

    def test_content_type_is_required(self) -> None:
        with pytest.raises(ValidationError):
            ReplaceImagePayload.model_validate({"description": "only"})

    @pytest.mark.parametrize(
        "field",
        ["id", "imageId", "imageUrl", "ownerId", "createdAt", "updatedAt", "owner_id"],
    )
    def test_immutable_fields_rejected(self, field) -> None:
        with pytest.raises(ValidationError, match="Immutable fields"):
            ReplaceImagePayload.model_validate({"contentType": "image/png", field: "x"})


class TestUpdateImagePayload:
    def test_only_sent_fields_are_changes(self) -> None:
        payload = UpdateImagePayload.model_validate({"description": "New"})

        assert payload.changes() == {"description": "New"}
        assert payload.to_upstream() == {"description": "New"}

    def test_explicit_null_description_is_a_change(self) -> None:
        payload = UpdateImagePayload.model_validate({"description": None})

        assert payload.changes() == {"description": None}

    def test_content_type_change(self) -> None:
        payload = UpdateImagePayload.model_validate({"contentType": "image/gif"})

        assert payload.changes() == {"content_type": "image/gif"}
        assert payload.to_upstream() == {"contentType": "image/gif"}

    def test_empty_body_rejected(self) -> None:
        with pytest.raises(ValidationError, match="At least one"):
            UpdateImagePayload.model_validate({})

    def test_null_content_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            UpdateImagePayload.model_validate({"contentType": None})

    def test_immutable_field_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Immutable fields"):
            UpdateImagePayload.model_validate({"imageUrl": "https://elsewhere.test/x.png"})


class TestSniffContentType:
    @pytest.mark.parametrize(
        "data,expected",
        [
            (b"\xff\xd8\xff\xe0abc", "image/jpeg"),
            (b"\x89PNG\r\n\x1a\nxxx", "image/png"),
            (b"GIF87a\x01\x00", "image/gif"),
            (b"GIF89a\x01\x00", "image/gif"),
        ],
    )
    def test_supported_signatures(self, data, expected) -> None:
        assert sniff_content_type(data) == expected

    @pytest.mark.parametrize(
        "data",
        [b"random-bytes", b"", b"RIFF\x00\x00\x00\x00WEBPVP8 ", b"BM\x00\x00"],
    )
    def test_unsupported_signature(self, data) -> None:
        with pytest.raises(ValueError):
            sniff_content_type(data)
