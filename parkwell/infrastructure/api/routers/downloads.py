from fastapi.responses import PlainTextResponse


def text_attachment(filename: str, content: str) -> PlainTextResponse:
    return PlainTextResponse(
        content=content,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
