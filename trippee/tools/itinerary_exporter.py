"""
Itinerary Exporter
==================
Produces the two downloadable artefacts for a trip:
  1. A printable PDF itinerary (via ReportLab)
  2. An interactive HTML route map (via Folium)

Both take the stored itinerary as plain dicts: a ``trip`` dict
(name, start_date, end_date, trip_days) and an ``itinerary`` dict shaped
like ``TripItineraryResponse`` (days with ordered places, unassigned).
"""
import io
import re
from datetime import date, datetime
from html import escape
from typing import Dict, List, Optional

from .places_client import google_maps_url

DAY_COLORS = ["#E8335D", "#3498DB", "#2ECC71", "#9B59B6",
              "#F39C12", "#1ABC9C", "#E74C3C", "#34495E"]
UNASSIGNED_COLOR = "#95A5A6"


def pdf_filename(trip_name: str) -> str:
    return f"{re.sub(r'[^a-z0-9]', '_', trip_name, flags=re.IGNORECASE)}_itinerary.pdf"


def _text(value) -> str:
    """Escape user text for a ReportLab Paragraph, which parses inline markup."""
    return escape(str(value), quote=False)


def _long_date(value: Optional[date]) -> str:
    if not value:
        return "Not set"
    return value.strftime("%A, %B %d, %Y").replace(" 0", " ")


class ItineraryExporter:

    # ── PDF ───────────────────────────────────────────────────────────────────

    def generate_pdf(self, trip: dict, itinerary: dict, trip_notes: str = "") -> bytes:
        """
        Render the itinerary as a letter-size PDF.

        Returns the PDF document as bytes.
        """
        from reportlab.lib import colors
        from reportlab.lib.pagesizes import letter
        from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
        from reportlab.lib.units import mm
        from reportlab.platypus import HRFlowable, Paragraph, SimpleDocTemplate, Spacer

        buf    = io.BytesIO()
        doc    = SimpleDocTemplate(buf, pagesize=letter,
                                   leftMargin=20*mm, rightMargin=20*mm,
                                   topMargin=20*mm, bottomMargin=20*mm,
                                   title=trip.get("name", "Itinerary"))
        styles = getSampleStyleSheet()
        SLATE  = colors.HexColor("#4A5568")
        GREY   = colors.HexColor("#646464")

        def ps(name, parent="Normal", **kw):
            return ParagraphStyle(name, parent=styles[parent], **kw)

        title_sty  = ps("TripTitle", "Title",    fontSize=24, spaceAfter=6)
        dates_sty  = ps("Dates",     fontSize=12, textColor=GREY, alignment=1, spaceAfter=14)
        day_sty    = ps("Day",       "Heading1", fontSize=18, textColor=SLATE, spaceBefore=12, spaceAfter=4)
        stats_sty  = ps("DayStats",  fontSize=9,  textColor=GREY, spaceAfter=6)
        place_sty  = ps("Place",     "Heading2", fontSize=14, spaceBefore=6, spaceAfter=2)
        detail_sty = ps("Detail",    fontSize=10, textColor=GREY, leftIndent=14)
        notes_sty  = ps("PlaceNote", fontSize=10, textColor=colors.HexColor("#555555"),
                        leftIndent=14, fontName="Helvetica-Oblique")
        empty_sty  = ps("Empty",     fontSize=11, textColor=colors.HexColor("#969696"),
                        leftIndent=14, fontName="Helvetica-Oblique")

        story = [Paragraph(_text(trip.get("name", "")), title_sty)]

        start, end = trip.get("start_date"), trip.get("end_date")
        if start and end:
            story.append(Paragraph(f"Trip Dates: {_long_date(start)} - {_long_date(end)}", dates_sty))
        elif start:
            story.append(Paragraph(f"Start Date: {_long_date(start)}", dates_sty))
        elif end:
            story.append(Paragraph(f"End Date: {_long_date(end)}", dates_sty))
        story.append(HRFlowable(width="100%", thickness=1, color=SLATE))

        def add_place(num: int, place: dict, heading=place_sty):
            story.append(Paragraph(f"{num}. {_text(place['name'])}", heading))
            if place.get("category"):
                story.append(Paragraph(f"[{_text(place['category'])}]", detail_sty))
            story.append(Paragraph(
                f"Location: {place['lat']:.4f}, {place['lng']:.4f}", detail_sty,
            ))
            if place.get("address"):
                story.append(Paragraph(f"Address: {_text(place['address'])}", detail_sty))
            if place.get("notes"):
                story.append(Paragraph(f"Notes: {_text(place['notes'])}", notes_sty))
            story.append(Spacer(1, 3))

        # ── Days
        for day in itinerary.get("days", []):
            day_date = day.get("calendar_date")
            label = f"Day {day['day']}"
            if day_date:
                label += f" - {_long_date(day_date)}"
            story.append(Paragraph(label, day_sty))

            places = day.get("places", [])
            if not places:
                story.append(Paragraph("No places assigned for this day.", empty_sty))
                continue

            story.append(Paragraph(
                f"{day.get('total_distance_km', 0):.1f} km · "
                f"~{day.get('estimated_travel_time_minutes', 0)} min travel · "
                f"~{day.get('estimated_visit_time_minutes', 0)} min visiting",
                stats_sty,
            ))
            for num, place in enumerate(places, 1):
                add_place(num, place)

        # ── Unassigned
        unassigned = itinerary.get("unassigned", [])
        if unassigned:
            story.append(Paragraph("Unassigned Places", day_sty))
            for num, place in enumerate(unassigned, 1):
                add_place(num, place, heading=ps(f"Unassigned{num}", "Heading3", fontSize=12))

        # ── Trip notes
        if trip_notes:
            story.append(Paragraph("Notes", day_sty))
            for line in trip_notes.splitlines():
                story.append(Paragraph(_text(line), styles["Normal"]))

        generated = f"Generated by Trippee - {datetime.now().strftime('%Y-%m-%d')}"

        def footer(canvas, document):
            canvas.saveState()
            canvas.setFont("Helvetica", 8)
            canvas.setFillColor(colors.HexColor("#969696"))
            canvas.drawCentredString(document.pagesize[0] / 2, 10*mm, generated)
            canvas.restoreState()

        doc.build(story, onFirstPage=footer, onLaterPages=footer)
        return buf.getvalue()

    # ── Map ───────────────────────────────────────────────────────────────────

    def generate_route_map(self, trip: dict, itinerary: dict) -> str:
        """
        Render an interactive route map, one colour per day.

        Returns the map as a standalone HTML document.
        """
        import folium

        days       = itinerary.get("days", [])
        unassigned = itinerary.get("unassigned", [])
        name       = trip.get("name", "Trip")

        everything: List[Dict] = [p for d in days for p in d.get("places", [])] + unassigned
        if everything:
            c_lat = sum(p["lat"] for p in everything) / len(everything)
            c_lng = sum(p["lng"] for p in everything) / len(everything)
            m = folium.Map(location=[c_lat, c_lng], zoom_start=13, tiles="CartoDB positron")
        else:
            m = folium.Map(location=[20.0, 0.0], zoom_start=2, tiles="CartoDB positron")

        def popup(place: dict, heading: str, color: str) -> folium.Popup:
            html = (
                f'<div style="font-family:sans-serif;min-width:190px;">'
                f'<h4 style="color:{color};margin:0 0 4px 0">{heading}</h4>'
                f'<b>{escape(place["name"])}</b>'
                + (f'<br><small>{escape(place["address"])}</small>' if place.get("address") else "")
                + (f'<br><small>[{escape(place["category"])}]</small>' if place.get("category") else "")
                + f'<br><a href="{escape(google_maps_url(place), quote=True)}" target="_blank">'
                  f'Open on Google Maps</a></div>'
            )
            return folium.Popup(html, max_width=240)

        for di, day in enumerate(days):
            color  = DAY_COLORS[di % len(DAY_COLORS)]
            places = day.get("places", [])

            for si, place in enumerate(places):
                icon_html = (
                    f'<div style="background:{color};color:white;border-radius:50%;'
                    f'width:30px;height:30px;display:flex;align-items:center;'
                    f'justify-content:center;font-weight:bold;font-size:11px;'
                    f'box-shadow:0 2px 6px rgba(0,0,0,.3);">{si + 1}</div>'
                )
                folium.Marker(
                    [place["lat"], place["lng"]],
                    popup=popup(place, f"Day {day['day']} · Stop {si + 1}", color),
                    tooltip=f"Day {day['day']}: {escape(place['name'])}",
                    icon=folium.DivIcon(html=icon_html, icon_size=(30, 30), icon_anchor=(15, 15)),
                ).add_to(m)

            if len(places) > 1:
                folium.PolyLine(
                    [[p["lat"], p["lng"]] for p in places],
                    color=color, weight=3, opacity=0.75,
                    tooltip=f"Day {day['day']} route",
                ).add_to(m)

        for place in unassigned:
            folium.CircleMarker(
                [place["lat"], place["lng"]],
                radius=7, color=UNASSIGNED_COLOR, fill=True, fill_opacity=0.8,
                popup=popup(place, "Unassigned", UNASSIGNED_COLOR),
                tooltip=f"Unassigned: {escape(place['name'])}",
            ).add_to(m)

        legend_items = "".join(
            f'<div style="margin-top:5px;">'
            f'<span style="background:{DAY_COLORS[i % len(DAY_COLORS)]};color:white;'
            f'padding:2px 8px;border-radius:10px;font-size:11px;">Day {d["day"]}</span> '
            f'{len(d.get("places", []))} stops</div>'
            for i, d in enumerate(days)
        )
        m.get_root().html.add_child(folium.Element(
            f'<div style="position:fixed;bottom:30px;right:30px;background:white;'
            f'padding:14px;border-radius:10px;box-shadow:0 2px 10px rgba(0,0,0,.2);'
            f'font-family:sans-serif;z-index:1000;">'
            f'<div style="font-weight:bold;font-size:13px;color:#4A5568;margin-bottom:6px;">'
            f'{escape(name)}</div>'
            f'{legend_items}</div>'
        ))

        return m.get_root().render()
