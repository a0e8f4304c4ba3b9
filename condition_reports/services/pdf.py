"""Condition report PDF composition.

Photos are fetched server-side and re-encoded as JPEG thumbnails before layout.
A photo that cannot be fetched or decoded is kept as an unavailable tile that
still links to the original URL, so every reference on an item is accounted for.
"""
from __future__ import annotations

import asyncio
import base64
import io
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
from xml.sax.saxutils import escape

import httpx
from PIL import Image
from reportlab.graphics.barcode.qr import QrCodeWidget
from reportlab.graphics.shapes import Drawing
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4, LETTER
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.platypus import Flowable, KeepTogether, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..config import settings
from ..constants import CONDITION_COLORS, CONDITION_LABELS, USER_ROLE_LABELS, ConditionState, UserRole
from ..core.errors import RenderFailure
from ..schemas.schemas import InspectionItemRead, PropertyRead, ReportRead, RoomRead
from ..utils.formatters import format_address_lines, format_date, format_datetime, format_duration, format_gps, safe_filename
from . import catalog

logger = logging.getLogger(__name__)

PAGE_SIZES = {"A4": A4, "LETTER": LETTER}
PHOTOS_PER_ROW = 3
FALLBACK_CONDITION_COLOR = "#777777"


@dataclass
class EmbeddedPhoto:
    external_url: str
    content: Optional[bytes] = None

    @property
    def available(self) -> bool:
        return self.content is not None

    @property
    def data_url(self) -> Optional[str]:
        if self.content is None:
            return None
        return "data:image/jpeg;base64," + base64.b64encode(self.content).decode("ascii")


@dataclass
class PreparedItem:
    item: InspectionItemRead
    category: Optional[catalog.InspectionCategory]
    photos: List[EmbeddedPhoto] = field(default_factory=list)


@dataclass
class PreparedRoom:
    room: RoomRead
    items: List[PreparedItem] = field(default_factory=list)


def condition_color(condition) -> str:
    try:
        return CONDITION_COLORS[ConditionState(condition)]
    except ValueError:
        return FALLBACK_CONDITION_COLOR


def condition_label(condition) -> str:
    try:
        return CONDITION_LABELS[ConditionState(condition)]
    except ValueError:
        return str(condition)


def role_label(role: str) -> str:
    try:
        return USER_ROLE_LABELS[UserRole(role)]
    except ValueError:
        return role


def href(url: str) -> str:
    return escape(url, {'"': "&quot;"})


def to_thumbnail(data: bytes, max_dimension: int) -> bytes:
    with Image.open(io.BytesIO(data)) as image:
        image.thumbnail((max_dimension, max_dimension))
        rgb = image.convert("RGB")
    buffer = io.BytesIO()
    rgb.save(buffer, format="JPEG", quality=80)
    return buffer.getvalue()


class PhotoFetcher:
    def __init__(self, client: httpx.AsyncClient, max_dimension: int) -> None:
        self.client = client
        self.max_dimension = max_dimension

    async def fetch(self, url: str) -> EmbeddedPhoto:
        try:
            response = await self.client.get(url)
            response.raise_for_status()
            content = to_thumbnail(response.content, self.max_dimension)
        except (httpx.HTTPError, httpx.InvalidURL, OSError, ValueError, Image.DecompressionBombError) as exc:
            logger.warning("Photo could not be embedded", extra={"photo_url": url, "error": str(exc)})
            return EmbeddedPhoto(external_url=url)
        return EmbeddedPhoto(external_url=url, content=content)


async def preprocess_report(
    report: ReportRead,
    fetcher: PhotoFetcher,
    concurrency: Optional[int] = None,
) -> List[PreparedRoom]:
    """Fetch every photo (bounded concurrency) and order items by catalog order."""
    semaphore = asyncio.Semaphore(max(1, concurrency or settings.pdf_photo_concurrency))

    async def _fetch(url: str) -> EmbeddedPhoto:
        async with semaphore:
            return await fetcher.fetch(url)

    urls = list(dict.fromkeys(url for room in report.rooms for item in room.items for url in item.photos))
    fetched = await asyncio.gather(*(_fetch(url) for url in urls))
    by_url: Dict[str, EmbeddedPhoto] = dict(zip(urls, fetched))

    prepared: List[PreparedRoom] = []
    for room in report.rooms:
        items = [
            PreparedItem(
                item=item,
                category=catalog.get_category(room.type, item.category_id),
                photos=[by_url[url] for url in item.photos],
            )
            for item in catalog.sort_items(room.type, room.items)
        ]
        prepared.append(PreparedRoom(room=room, items=items))
    logger.info("Report photos prepared", extra={"report_id": report.id, "photos": len(urls)})
    return prepared


def public_report_url(report_id: str) -> str:
    return f"{settings.public_base_url.rstrip('/')}/public/reports/{report_id}"


def short_report_link(report_id: str) -> str:
    base = settings.public_base_url.rstrip("/").split("://", 1)[-1]
    return f"{base}/public/reports/{report_id[:8]}"


def build_qr_drawing(url: str, size: float = 22 * mm) -> Optional[Drawing]:
    try:
        widget = QrCodeWidget(url)
        x1, y1, x2, y2 = widget.getBounds()
        width, height = x2 - x1, y2 - y1
        drawing = Drawing(size, size, transform=[size / width, 0, 0, size / height, 0, 0])
        drawing.add(widget)
    except Exception as exc:
        logger.warning("QR code generation failed", extra={"url": url, "error": str(exc)})
        return None
    return drawing


def pdf_filename(property_name: str, report_id: str) -> str:
    return f"{safe_filename(property_name)}_Report_{report_id[:8]}.pdf"


class PhotoTile(Flowable):
    """Thumbnail (or an unavailable placeholder) hyperlinked to the full-resolution photo."""

    def __init__(self, photo: EmbeddedPhoto, width: float, height: float) -> None:
        super().__init__()
        self.photo = photo
        self.width = width
        self.height = height

    def wrap(self, availWidth, availHeight):
        return self.width, self.height

    def draw(self):
        canv = self.canv
        if self.photo.available:
            canv.drawImage(
                ImageReader(io.BytesIO(self.photo.content)),
                0,
                0,
                width=self.width,
                height=self.height,
                preserveAspectRatio=True,
                anchor="c",
            )
        else:
            canv.setFillColor(colors.HexColor("#e0e0e0"))
            canv.rect(0, 0, self.width, self.height, fill=1, stroke=0)
            canv.setFillColor(colors.HexColor("#666666"))
            canv.setFont("Helvetica", 8)
            canv.drawCentredString(self.width / 2, self.height / 2, "Photo unavailable")
        canv.linkURL(self.photo.external_url, (0, 0, self.width, self.height), relative=1)


class _Styles:
    def __init__(self, brand: colors.Color) -> None:
        base = getSampleStyleSheet()
        self.title = ParagraphStyle("ReportTitle", parent=base["Title"], fontSize=18, leading=22, textColor=brand, alignment=0, spaceAfter=4)
        self.subtitle = ParagraphStyle("Subtitle", parent=base["Normal"], fontSize=12, leading=15, textColor=colors.HexColor("#666666"))
        self.info = ParagraphStyle("Info", parent=base["Normal"], fontSize=9, leading=12, textColor=colors.HexColor("#888888"))
        self.small_center = ParagraphStyle("SmallCenter", parent=base["Normal"], fontSize=7, leading=9, alignment=TA_CENTER, textColor=colors.HexColor("#666666"))
        self.stat_number = ParagraphStyle("StatNumber", parent=base["Normal"], fontSize=13, leading=16, alignment=TA_CENTER, textColor=brand, fontName="Helvetica-Bold")
        self.stat_label = ParagraphStyle("StatLabel", parent=base["Normal"], fontSize=7, leading=9, alignment=TA_CENTER, textColor=colors.HexColor("#666666"))
        self.room = ParagraphStyle("Room", parent=base["Heading2"], fontSize=13, leading=16, backColor=colors.HexColor("#f8f9fa"), borderPadding=6, spaceBefore=10, spaceAfter=10)
        self.video = ParagraphStyle("Video", parent=base["Normal"], fontSize=9, leading=12, textColor=colors.HexColor("#0d47a1"), backColor=colors.HexColor("#e3f2fd"), borderPadding=5, spaceAfter=10)
        self.item = ParagraphStyle("Item", parent=base["Normal"], fontSize=11, leading=14, fontName="Helvetica-Bold")
        self.description = ParagraphStyle("Description", parent=base["Normal"], fontSize=8, leading=10, textColor=colors.HexColor("#666666"), spaceAfter=4)
        self.notes = ParagraphStyle("Notes", parent=base["Normal"], fontSize=9, leading=12, backColor=colors.HexColor("#f8f9fa"), borderPadding=5, spaceBefore=6, spaceAfter=6)
        self.photo_count = ParagraphStyle("PhotoCount", parent=base["Normal"], fontSize=8, leading=10, textColor=colors.HexColor("#888888"))


class ReportDocument:
    """Lays out one report. ``build`` returns the finished PDF bytes."""

    footer_height = 32 * mm

    def __init__(
        self,
        report: ReportRead,
        prop: PropertyRead,
        rooms: Sequence[PreparedRoom],
        creator_role: str,
        creator_name: str,
    ) -> None:
        self.report = report
        self.prop = prop
        self.rooms = rooms
        self.creator_role = creator_role
        self.creator_name = creator_name
        self.pagesize = PAGE_SIZES.get(settings.pdf_page_size, A4)
        self.styles = _Styles(colors.HexColor(settings.brand_color))

    # --- page decorations ----------------------------------------------

    def watermark_text(self) -> str:
        return f"{settings.app_name} {settings.watermark_text} - Created by {self.creator_role.upper()} - Not jointly signed"

    def footer_lines(self) -> List[str]:
        created = format_datetime(self.report.created_at)
        return [
            f"{settings.app_name} Solo Condition Report | Role: {role_label(self.creator_role)} | Name: {self.creator_name} | Created: {created}",
            f"Property: {self.prop.name} | GPS: {format_gps(self.prop.gps_coordinates)}",
        ]

    def _decorate(self, canv, doc) -> None:
        width, height = self.pagesize
        left = doc.leftMargin
        usable = width - doc.leftMargin - doc.rightMargin

        canv.saveState()
        canv.setFont("Helvetica", 7)
        canv.setFillColor(colors.HexColor("#999999"))
        canv.drawRightString(width - doc.rightMargin, height - 12 * mm, self.watermark_text())

        canv.setStrokeColor(colors.HexColor("#eeeeee"))
        canv.line(left, self.footer_height, left + usable, self.footer_height)
        canv.setFillColor(colors.HexColor("#666666"))
        y = self.footer_height - 10
        for line in self.footer_lines():
            canv.setFont("Helvetica", 7)
            canv.drawString(left, y, line[:160])
            y -= 9
        canv.setFillColor(colors.HexColor("#888888"))
        for line in simpleSplit(settings.disclaimer_text, "Helvetica", 6, usable):
            canv.setFont("Helvetica", 6)
            canv.drawString(left, y, line)
            y -= 7
        canv.setFont("Helvetica", 7)
        canv.drawRightString(left + usable, 8 * mm, f"Page {doc.page}")
        canv.restoreState()

    # --- story ---------------------------------------------------------

    def _header(self, width: float) -> List[Flowable]:
        s = self.styles
        first, second = format_address_lines(self.prop.address)
        details = [
            Paragraph(escape(f"{settings.app_name} {settings.report_title}"), s.title),
            Paragraph(escape(self.prop.name), s.subtitle),
            Paragraph(escape(self.report.title), s.info),
            Paragraph(escape(first), s.info),
            Paragraph(escape(second), s.info),
            Paragraph(escape(f"GPS: {format_gps(self.prop.gps_coordinates)}"), s.info),
        ]
        url = public_report_url(self.report.id)
        qr = build_qr_drawing(url)
        if qr is None:
            return details + [Spacer(1, 8)]

        qr_block = [
            qr,
            Paragraph("Scan for Online Report", s.small_center),
            Paragraph(f'<a href="{href(url)}" color="#0066cc">{escape(short_report_link(self.report.id))}</a>', s.small_center),
        ]
        table = Table([[details, qr_block]], colWidths=[width * 0.72, width * 0.28])
        table.setStyle(
            TableStyle(
                [
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("LINEBELOW", (0, 0), (-1, 0), 2, colors.HexColor(settings.brand_color)),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
                ]
            )
        )
        return [table, Spacer(1, 10)]

    def _summary(self, width: float) -> List[Flowable]:
        s = self.styles
        items = sum(len(room.items) for room in self.rooms)
        photos = sum(len(entry.photos) for room in self.rooms for entry in room.items)
        stats = [
            (str(len(self.rooms)), "ROOMS"),
            (str(items), "ITEMS"),
            (str(photos), "PHOTOS"),
            (format_date(self.report.created_at) or "-", "CREATED"),
        ]
        table = Table(
            [[Paragraph(value, s.stat_number) for value, _ in stats], [Paragraph(label, s.stat_label) for _, label in stats]],
            colWidths=[width / len(stats)] * len(stats),
        )
        table.setStyle(TableStyle([("BACKGROUND", (0, 0), (-1, -1), colors.HexColor("#f8f9fa"))]))
        return [table, Spacer(1, 12)]

    def _badge(self, condition) -> Table:
        badge = Table([[condition_label(condition)]], hAlign="LEFT")
        badge.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, -1), colors.HexColor(condition_color(condition))),
                    ("TEXTCOLOR", (0, 0), (-1, -1), colors.white),
                    ("FONTSIZE", (0, 0), (-1, -1), 8),
                    ("LEFTPADDING", (0, 0), (-1, -1), 6),
                    ("RIGHTPADDING", (0, 0), (-1, -1), 6),
                    ("TOPPADDING", (0, 0), (-1, -1), 2),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 2),
                ]
            )
        )
        return badge

    def _photo_grid(self, photos: Sequence[EmbeddedPhoto], width: float) -> Table:
        cell = width / PHOTOS_PER_ROW
        tile_width = cell - 6
        tile_height = min(tile_width * 0.75, 42 * mm)
        rows = []
        for start in range(0, len(photos), PHOTOS_PER_ROW):
            row = [PhotoTile(photo, tile_width, tile_height) for photo in photos[start:start + PHOTOS_PER_ROW]]
            row.extend([""] * (PHOTOS_PER_ROW - len(row)))
            rows.append(row)
        grid = Table(rows, colWidths=[cell] * PHOTOS_PER_ROW, hAlign="LEFT")
        grid.setStyle(TableStyle([("LEFTPADDING", (0, 0), (-1, -1), 0), ("VALIGN", (0, 0), (-1, -1), "TOP")]))
        return grid

    def _item(self, entry: PreparedItem, width: float) -> Flowable:
        s = self.styles
        name = entry.category.name if entry.category else "Item"
        parts: List[Flowable] = [Paragraph(escape(name), s.item)]
        if entry.category and entry.category.description:
            parts.append(Paragraph(escape(entry.category.description), s.description))
        parts.append(self._badge(entry.item.condition))
        if entry.item.notes:
            parts.append(Paragraph(escape(entry.item.notes), s.notes))
        if entry.photos:
            count = len(entry.photos)
            parts.append(Spacer(1, 4))
            parts.append(Paragraph(f"{count} photo{'s' if count > 1 else ''}", s.photo_count))
            parts.append(self._photo_grid(entry.photos, width))
        parts.append(Spacer(1, 10))
        return KeepTogether(parts)

    def _room(self, prepared: PreparedRoom, width: float) -> List[Flowable]:
        s = self.styles
        room = prepared.room
        flow: List[Flowable] = [Paragraph(escape(room.name), s.room)]
        if room.video_url:
            duration = format_duration(room.video_duration)
            label = f"Room Walkthrough Video: Click to view ({duration})" if duration else "Room Walkthrough Video: Click to view"
            flow.append(Paragraph(f'<a href="{href(room.video_url)}">{escape(label)}</a>', s.video))
        for entry in prepared.items:
            flow.append(self._item(entry, width))
        return flow

    def build(self) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=self.pagesize,
            leftMargin=15 * mm,
            rightMargin=15 * mm,
            topMargin=18 * mm,
            bottomMargin=self.footer_height + 6 * mm,
            title=f"{settings.report_title} - {self.prop.name}",
            author=self.creator_name,
        )
        story: List[Flowable] = []
        story.extend(self._header(doc.width))
        story.extend(self._summary(doc.width))
        for prepared in self.rooms:
            story.extend(self._room(prepared, doc.width))
        doc.build(story, onFirstPage=self._decorate, onLaterPages=self._decorate)
        return buffer.getvalue()


async def render_report_pdf(
    report: ReportRead,
    prop: PropertyRead,
    creator_role: str,
    creator_name: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bytes:
    """Fetch photos and compose the report. Raises ``RenderFailure`` with no partial output."""
    try:
        async with httpx.AsyncClient(
            timeout=settings.pdf_photo_fetch_timeout_seconds,
            follow_redirects=True,
            transport=transport,
        ) as client:
            fetcher = PhotoFetcher(client, settings.pdf_thumbnail_max_dimension)
            rooms = await preprocess_report(report, fetcher)
        pdf_bytes = ReportDocument(report, prop, rooms, creator_role, creator_name).build()
    except Exception as exc:
        logger.exception("PDF composition failed", extra={"report_id": report.id})
        raise RenderFailure(f"Failed to generate PDF: {exc}") from exc
    logger.info("PDF rendered", extra={"report_id": report.id, "bytes": len(pdf_bytes)})
    return pdf_bytes
