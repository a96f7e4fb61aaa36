from docpipe.canvas.models import AssetType, Citation, ExtractedAsset

_HEADER_KEYWORDS: tuple[tuple[str, AssetType], ...] = (
    ("Figure", AssetType.FIGURE),
    ("Table", AssetType.TABLE),
    ("Quote", AssetType.QUOTE),
    ("Chart", AssetType.CHART),
)


def parse_extracted_assets(content: str) -> list[ExtractedAsset]:
    """Split an asset-extraction answer into assets.

    A line mentioning Figure, Table, Quote or Chart opens a new asset (the
    first keyword in that order decides the type); following lines become
    its content until the next header.
    """
    assets: list[ExtractedAsset] = []
    header: tuple[AssetType, str] | None = None
    body: list[str] = []

    for line in content.splitlines():
        asset_type = _header_type(line)
        if asset_type is not None:
            if header is not None:
                assets.append(_build_asset(header, body))
            header = (asset_type, line.strip())
            body = []
        elif header is not None:
            body.append(line)

    if header is not None:
        assets.append(_build_asset(header, body))
    return assets


def citations_to_assets(citations: list[Citation]) -> list[ExtractedAsset]:
    """Represent query citations as quote assets."""
    assets: list[ExtractedAsset] = []
    for citation in citations:
        metadata = {"source": citation.source}
        reference = citation.source
        if citation.page_number is not None:
            metadata["pageNumber"] = str(citation.page_number)
            reference = f"{citation.source}, p. {citation.page_number}"
        assets.append(
            ExtractedAsset(
                type=AssetType.QUOTE,
                source_reference=reference,
                content=citation.excerpt,
                metadata=metadata,
            )
        )
    return assets


def _header_type(line: str) -> AssetType | None:
    for keyword, asset_type in _HEADER_KEYWORDS:
        if keyword in line:
            return asset_type
    return None


def _build_asset(header: tuple[AssetType, str], body: list[str]) -> ExtractedAsset:
    asset_type, reference = header
    return ExtractedAsset(
        type=asset_type,
        source_reference=reference,
        content="\n".join(body).strip(),
    )
