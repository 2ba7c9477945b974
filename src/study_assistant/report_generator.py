# renders the offline html study report
from datetime import date, datetime
from html import escape
from typing import List, Optional, Sequence

from .models import FileStatus, Priority, RoadmapStep, TrackedFile

TURKISH_MONTHS = [
    "Ocak", "Şubat", "Mart", "Nisan", "Mayıs", "Haziran",
    "Temmuz", "Ağustos", "Eylül", "Ekim", "Kasım", "Aralık",
]

# badge css class per priority
PRIORITY_CLASSES = {
    Priority.HIGH: "badge-high",
    Priority.MEDIUM: "badge-medium",
    Priority.LOW: "badge-low",
}

# inline stylesheet so the report opens without network access
REPORT_CSS = """
* { box-sizing: border-box; }
body { margin: 0; padding: 40px 16px; background: #f8fafc; color: #0f172a;
       font-family: -apple-system, "Segoe UI", Roboto, Helvetica, Arial, sans-serif;
       -webkit-print-color-adjust: exact; print-color-adjust: exact; }
.container { max-width: 56rem; margin: 0 auto; }
.header { text-align: center; margin-bottom: 48px; padding-bottom: 32px; border-bottom: 1px solid #e2e8f0; }
.header h1 { font-size: 30px; margin: 0; }
.muted { color: #64748b; }
.card { background: #fff; border: 1px solid #e2e8f0; border-radius: 12px; margin-bottom: 32px;
        overflow: hidden; box-shadow: 0 2px 6px rgba(15, 23, 42, .06); break-inside: avoid; }
.card-header { background: #f8fafc; padding: 16px; border-bottom: 1px solid #f1f5f9; }
.card-header h3 { margin: 0; font-size: 18px; }
.card-header p { margin: 4px 0 0; font-size: 12px; }
.card-body { padding: 24px; }
.label { text-transform: uppercase; letter-spacing: .05em; font-size: 12px; font-weight: 700;
         color: #64748b; margin: 0 0 10px; }
.summary { background: #f8fafc; border: 1px solid #f1f5f9; border-radius: 8px; padding: 16px;
           line-height: 1.6; margin: 0 0 24px; }
.tags { display: flex; flex-wrap: wrap; gap: 8px; margin-bottom: 24px; }
.tag { padding: 4px 12px; border: 1px solid #e2e8f0; border-radius: 999px; font-size: 14px; background: #fff; }
table { width: 100%; border-collapse: collapse; font-size: 14px; }
th { text-align: left; text-transform: uppercase; font-size: 12px; background: #f8fafc; padding: 12px 16px;
     border-bottom: 1px solid #e2e8f0; }
td { padding: 12px 16px; border-bottom: 1px solid #f1f5f9; vertical-align: top; }
td.priority, th.priority { text-align: center; }
.badge { display: inline-block; padding: 2px 8px; border-radius: 4px; font-size: 12px; font-weight: 600;
         border: 1px solid; }
.badge-high { background: #fee2e2; color: #b91c1c; border-color: #fecaca; }
.badge-medium { background: #fef3c7; color: #b45309; border-color: #fde68a; }
.badge-low { background: #d1fae5; color: #047857; border-color: #a7f3d0; }
.roadmap { background: #fff; border: 1px solid #e0e7ff; border-radius: 16px; padding: 32px;
           margin-bottom: 32px; break-inside: avoid; }
.roadmap h2, .focus h2, .cloud h2 { margin: 0 0 24px; }
.timeline { border-left: 2px solid #c7d2fe; margin-left: 20px; padding: 8px 0; }
.step { position: relative; padding-left: 40px; margin-bottom: 32px; break-inside: avoid; }
.step:last-child { margin-bottom: 0; }
.step::before { content: ""; position: absolute; left: -11px; top: 4px; width: 12px; height: 12px;
                border-radius: 50%; background: #fff; border: 4px solid #4f46e5; }
.step-box { background: #f8fafc; border: 1px solid #e2e8f0; border-radius: 12px; padding: 20px; }
.step-name { display: inline-block; font-size: 12px; font-weight: 700; text-transform: uppercase;
             color: #4f46e5; background: #eef2ff; border: 1px solid #e0e7ff; border-radius: 4px; padding: 2px 8px; }
.step h3 { margin: 10px 0; }
.focus { background: #fff1f2; border: 1px solid #fecdd3; border-radius: 16px; padding: 24px;
         margin-bottom: 32px; break-inside: avoid; }
.focus h2 { color: #9f1239; margin-bottom: 8px; }
.focus p { color: #be123c; font-size: 14px; margin: 0 0 24px; }
.focus-grid { display: grid; grid-template-columns: repeat(auto-fill, minmax(220px, 1fr)); gap: 12px; }
.focus-item { background: #fff; border: 1px solid #ffe4e6; border-radius: 8px; padding: 12px;
              color: #881337; font-weight: 500; }
.cloud { background: #0f172a; color: #f1f5f9; border-radius: 16px; padding: 32px; break-inside: avoid; }
.cloud .tag { background: #1e293b; border-color: #334155; color: #cbd5e1; border-radius: 4px; }
.footer { margin-top: 64px; padding-top: 32px; border-top: 1px solid #e2e8f0; text-align: center;
          color: #94a3b8; font-size: 14px; }
@media print { .no-print { display: none; } body { background: #fff; } }
"""


def format_report_date(moment: datetime) -> str:
    """e.g. '17 Ekim 2026 14:05'"""
    return f"{moment.day} {TURKISH_MONTHS[moment.month - 1]} {moment.year} {moment:%H:%M}"


def report_filename(day: date) -> str:
    return f"calisma-raporu-{day.isoformat()}.html"


def _tags(topics: Sequence[str]) -> str:
    return "".join(f'<span class="tag">{escape(t)}</span>' for t in topics)


# one card per completed file: header, summary, topics, study plan table
def _file_card(file: TrackedFile) -> str:
    result = file.result
    rows = "".join(
        f"""
        <tr>
          <td><strong>{escape(item.topic)}</strong></td>
          <td>{escape(item.action)}</td>
          <td class="priority"><span class="badge {PRIORITY_CLASSES[item.priority]}">{escape(item.priority.value)}</span></td>
        </tr>"""
        for item in result.study_plan
    )
    size_mb = file.file_size / 1024 / 1024

    return f"""
    <div class="card">
      <div class="card-header">
        <h3>{escape(file.file_name)}</h3>
        <p class="muted">Dosya Boyutu: {size_mb:.2f} MB</p>
      </div>
      <div class="card-body">
        <h4 class="label">Özet</h4>
        <p class="summary">{escape(result.summary)}</p>

        <h4 class="label">Ana Konular</h4>
        <div class="tags">{_tags(result.topics)}</div>

        <h4 class="label">Çalışma Planı</h4>
        <table>
          <thead>
            <tr><th>Konu</th><th>Yapılacaklar</th><th class="priority">Öncelik</th></tr>
          </thead>
          <tbody>{rows}
          </tbody>
        </table>
      </div>
    </div>"""


def _roadmap_section(roadmap: Sequence[RoadmapStep]) -> str:
    if not roadmap:
        return ""
    steps = "".join(
        f"""
        <div class="step">
          <div class="step-box">
            <span class="step-name">{escape(step.step_name)}</span>
            <h3>{escape(step.title)}</h3>
            <p class="muted">{escape(step.description)}</p>
            <h4 class="label">Konular</h4>
            <div class="tags">{_tags(step.topics)}</div>
          </div>
        </div>"""
        for step in roadmap
    )
    return f"""
    <div class="roadmap">
      <h2>Kişiselleştirilmiş Yol Haritası</h2>
      <div class="timeline">{steps}
      </div>
    </div>"""


def _high_priority_section(topics: Sequence[str]) -> str:
    if not topics:
        return ""
    items = "".join(f'<div class="focus-item">{escape(t)}</div>' for t in topics)
    return f"""
    <div class="focus">
      <h2>Kesin Çalışman Gerekenler</h2>
      <p>Bu liste, yüklediğiniz tüm dökümanlardan çıkarılan <strong>Yüksek Öncelikli</strong> konuları içerir.</p>
      <div class="focus-grid">{items}</div>
    </div>"""


def _all_topics_section(topics: Sequence[str]) -> str:
    if not topics:
        return ""
    return f"""
    <div class="cloud">
      <h2>Tüm Konu Başlıkları</h2>
      <div class="tags">{_tags(topics)}</div>
    </div>"""


def render_html_report(
    files: Sequence[TrackedFile],
    all_topics: Sequence[str],
    high_priority_topics: Sequence[str],
    roadmap: Sequence[RoadmapStep] = (),
    generated_at: Optional[datetime] = None,
) -> str:
    """Render the standalone HTML report.

    Only completed files get a card; the roadmap, high-priority and
    all-topics sections appear only when they have content. Every piece of
    user or AI text is HTML-escaped.
    """
    date_text = escape(format_report_date(generated_at or datetime.now()))
    cards: List[str] = [_file_card(f) for f in files if f.status == FileStatus.COMPLETED and f.result]
    cards_html = "".join(cards)

    return f"""<!DOCTYPE html>
<html lang="tr">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>Çalışma Raporu - {date_text}</title>
    <style>{REPORT_CSS}</style>
  </head>
  <body>
    <div class="container">
      <div class="header">
        <h1>Kişiselleştirilmiş Çalışma Raporu</h1>
        <p class="muted">Oluşturulma Tarihi: {date_text}</p>
      </div>

      <div class="content">
        {cards_html}
        {_roadmap_section(roadmap)}
        {_high_priority_section(high_priority_topics)}
        {_all_topics_section(all_topics)}
      </div>

      <div class="footer no-print">
        <p>Bu rapor Yapay Zeka Destekli Çalışma Asistanı tarafından oluşturulmuştur.</p>
      </div>
    </div>
  </body>
</html>
"""
