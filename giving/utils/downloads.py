"""File download responses."""

from fastapi.responses import Response


def attachment(content: str | bytes, filename: str, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def csv_attachment(content: str, filename: str) -> Response:
    return attachment(content, filename, "text/csv")


def pdf_attachment(content: bytes, filename: str) -> Response:
    return attachment(content, filename, "application/pdf")
