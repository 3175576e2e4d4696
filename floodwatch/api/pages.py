"""
Server-rendered HTML for the FloodWatch pages.

User-supplied text is escaped here; views hand over plain values.
"""

from html import escape
from typing import Iterable, Optional

from floodwatch.alerts.notifier import Toast, ToastLevel
from floodwatch.core.constants import RAIN_LEVEL_LABELS, RAIN_LEVELS
from floodwatch.views.auth import AuthMode, AuthView
from floodwatch.views.base import ViewController, ViewStatus
from floodwatch.views.dashboard import DashboardView
from floodwatch.views.home import HomeView
from floodwatch.views.live_map import LiveMapView
from floodwatch.views.report import ReportView

STYLE = """
    body { font-family: Arial; margin: 0; background: linear-gradient(180deg, #e0f2fe, #f8fafc); color: #0f172a; }
    nav { display: flex; justify-content: space-between; align-items: center; padding: 12px 24px; background: rgba(255,255,255,0.85); border-bottom: 1px solid #cbd5e1; }
    nav a { margin-right: 12px; color: #0369a1; text-decoration: none; }
    nav a.active { font-weight: bold; border-bottom: 2px solid #0369a1; }
    main { max-width: 960px; margin: 30px auto; padding: 0 20px; }
    .card { background: rgba(255,255,255,0.9); border-radius: 8px; padding: 20px; margin-bottom: 20px; border: 1px solid #e2e8f0; }
    .toast { padding: 10px 16px; border-radius: 6px; margin-bottom: 10px; }
    .toast-success { background: #dcfce7; color: #166534; }
    .toast-error { background: #fee2e2; color: #991b1b; }
    .risk-high { background: #ef4444; color: white; }
    .risk-moderate { background: #f59e0b; color: white; }
    .risk-low { background: #14b8a6; color: white; }
    label { display: block; margin-top: 12px; font-weight: bold; }
    input, textarea, select { width: 100%; padding: 8px; margin-top: 4px; box-sizing: border-box; }
    button { margin-top: 16px; padding: 10px 20px; background: #0369a1; color: white; border: none; border-radius: 6px; cursor: pointer; }
    button:disabled { background: #94a3b8; }
    .progress { background: #e2e8f0; border-radius: 4px; height: 10px; }
    .progress > div { background: #16a34a; height: 10px; border-radius: 4px; }
    .grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 16px; }
"""


def render_toasts(toasts: Iterable[Toast]) -> str:
    items = []
    for toast in toasts:
        css = "toast-success" if toast.level == ToastLevel.SUCCESS else "toast-error"
        items.append(f'<div class="toast {css}">{escape(toast.message)}</div>')
    return "\n".join(items)


def render_navbar(view: ViewController) -> str:
    links = " ".join(
        f'<a href="{link["href"]}" class="{"active" if link["active"] else ""}">{link["label"]}</a>'
        for link in view.nav_links
    )
    if view.identity is not None:
        account = (
            f'<span>{escape(view.identity.email or "")}</span> '
            '<form method="post" action="/logout" style="display:inline">'
            '<button type="submit" style="margin:0;padding:6px 12px">Logout</button></form>'
        )
    else:
        account = '<a href="/auth">Sign In</a>'
    return f"<nav><div><b>💧 FloodWatch</b> &nbsp; {links}</div><div>{account}</div></nav>"


def render_page(view: ViewController, body: str, toasts: Iterable[Toast] = ()) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{escape(view.title)} - FloodWatch</title>
    <style>{STYLE}</style>
</head>
<body>
    {render_navbar(view)}
    <main>
        {render_toasts(toasts)}
        {body}
    </main>
</body>
</html>
"""


def render_home(view: HomeView) -> str:
    features = "\n".join(
        f'<div class="card"><h3>{icon} {title}</h3><p>{text}</p></div>'
        for icon, title, text in view.features
    )
    if view.identity is not None:
        actions = '<a href="/map">View Live Map</a> &nbsp; <a href="/report">Report Road Condition</a>'
    else:
        actions = '<a href="/auth">Get Started</a>'
    return f"""
    <div class="card">
        <h1>Stay Safe During Karachi Floods</h1>
        <p>Crowdsourced road conditions, live flood risk and your eco impact in one place.</p>
        <p>{actions}</p>
    </div>
    <div class="grid">{features}</div>
    """


def render_auth(view: AuthView) -> str:
    login = view.mode == AuthMode.LOGIN
    heading = "Welcome Back" if login else "Join FloodWatch"
    other_mode = AuthMode.SIGNUP if login else AuthMode.LOGIN
    toggle = "Don't have an account? Sign up" if login else "Already have an account? Sign in"
    return f"""
    <div class="card" style="max-width: 420px; margin: 0 auto;">
        <h2>{heading}</h2>
        <form method="post" action="/auth">
            <input type="hidden" name="mode" value="{view.mode.value}">
            <label for="email">Email</label>
            <input id="email" name="email" type="email" placeholder="you@example.com" value="{escape(view.email)}" required>
            <label for="password">Password</label>
            <input id="password" name="password" type="password" required>
            <button type="submit">{"Sign In" if login else "Sign Up"}</button>
        </form>
        <p><a href="/auth?mode={other_mode.value}">{toggle}</a></p>
    </div>
    """


def render_dashboard(view: DashboardView) -> str:
    if view.status != ViewStatus.POPULATED:
        return '<div class="card"><h2>My Eco Impact</h2><p>No data yet.</p></div>'

    label, badge = view.impact
    tip = ""
    if view.eco_tip is not None:
        tip = f'<div class="card"><h3>💡 Eco Tip</h3><p>{escape(view.eco_tip.tip)}</p></div>'

    reports = "\n".join(
        f"<li><b>{escape(r.location)}</b> ({r.rain_level.value}) - {escape(r.description)}"
        f"{' - ' + r.created_at.strftime('%Y-%m-%d %H:%M') if r.created_at else ''}</li>"
        for r in view.reports
    ) or "<li>No reports yet</li>"

    stats = "\n".join(
        f"<li>+{s.co2_saved:.1f} kg ({escape(s.action_type)})"
        f"{' - ' + s.created_at.strftime('%Y-%m-%d') if s.created_at else ''}</li>"
        for s in view.eco_stats
    ) or "<li>No eco activity yet</li>"

    return f"""
    <h1>Welcome, {escape(view.profile.display_name)}</h1>
    <div class="grid">
        <div class="card">
            <h3>🌱 CO₂ Saved</h3>
            <p style="font-size: 28px; margin: 0;">{view.total_co2:.1f} kg</p>
            <div class="progress"><div style="width: {view.progress_percent:.0f}%"></div></div>
            <p>{view.progress_percent:.0f}% of {view.co2_goal:.0f} kg goal</p>
        </div>
        <div class="card">
            <h3>📄 Reports Submitted</h3>
            <p style="font-size: 28px; margin: 0;">{view.report_count}</p>
            <p>Helping the community stay safe</p>
        </div>
        <div class="card">
            <h3>📈 Impact Level</h3>
            <p style="font-size: 28px; margin: 0;">{label}</p>
            <p>{badge} Community Member</p>
        </div>
    </div>
    {tip}
    <div class="card"><h3>My Reports</h3><ul>{reports}</ul></div>
    <div class="card">
        <h3>Eco Activity</h3><ul>{stats}</ul>
        <form method="post" action="/dashboard/reconcile">
            <button type="submit">Recalculate total from activity</button>
        </form>
    </div>
    """


def render_map(view: LiveMapView, map_html: Optional[str] = None) -> str:
    banner = ""
    risk = view.flood_risk
    if risk is not None:
        weather = view.weather
        banner = f"""
        <div class="card {risk.css_class}">
            <b>{risk.level} - {risk.text}</b>
            <span style="float: right;">{escape(weather.city or "")}: {weather.precipitation_mm:.1f} mm rain,
            {weather.humidity_percent:.0f}% humidity, {weather.temperature_celsius:.0f}°C ({weather.condition})</span>
        </div>
        """

    if view.status == ViewStatus.EMPTY:
        summary = "<p>No reports yet. Be the first to report a road condition.</p>"
    else:
        summary = f"<p>{len(view.markers)} road reports</p>"

    return f"""
    {banner}
    <div class="card">
        <h2>Live Flood Map</h2>
        {summary}
        {map_html or ""}
    </div>
    """


def render_report(view: ReportView) -> str:
    fields = view.fields
    options = "\n".join(
        f'<option value="{level}"{" selected" if fields["rain_level"] == level else ""}>'
        f"{RAIN_LEVEL_LABELS[level]}</option>"
        for level in RAIN_LEVELS
    )
    disabled = " disabled" if view.submitting else ""
    return f"""
    <div class="card">
        <h2>Report Road Condition</h2>
        <p>Help your community by reporting flooded or damaged roads. Earn eco points for every report!</p>
        <form method="post" action="/report">
            <label for="location">Location *</label>
            <input id="location" name="location" placeholder="e.g., Clifton Block 5" value="{escape(str(fields["location"]))}" required>
            <button type="button" onclick="detectLocation()">📍 Detect</button>
            <div class="grid">
                <div><label for="latitude">Latitude</label>
                <input id="latitude" name="latitude" type="number" step="any" value="{escape(str(fields["latitude"]))}"></div>
                <div><label for="longitude">Longitude</label>
                <input id="longitude" name="longitude" type="number" step="any" value="{escape(str(fields["longitude"]))}"></div>
            </div>
            <label for="rain_level">Rain/Flood Level *</label>
            <select id="rain_level" name="rain_level">{options}</select>
            <label for="description">Description *</label>
            <textarea id="description" name="description" rows="5" placeholder="Describe the road condition, traffic situation, and any hazards..." required>{escape(str(fields["description"]))}</textarea>
            <label for="image_url">Image URL (optional)</label>
            <input id="image_url" name="image_url" type="url" placeholder="https://example.com/image.jpg" value="{escape(str(fields["image_url"] or ""))}">
            <button type="submit"{disabled}>{"Submitting..." if view.submitting else "Submit Report"}</button>
        </form>
    </div>
    <script>
    function postLocation(data) {{
        const form = document.createElement("form");
        form.method = "post";
        form.action = "/report/locate";
        for (const [key, value] of Object.entries(data)) {{
            const input = document.createElement("input");
            input.type = "hidden"; input.name = key; input.value = value;
            form.appendChild(input);
        }}
        document.body.appendChild(form);
        form.submit();
    }}
    function detectLocation() {{
        if (!navigator.geolocation) {{ postLocation({{error: "unsupported"}}); return; }}
        navigator.geolocation.getCurrentPosition(
            (p) => postLocation({{latitude: p.coords.latitude, longitude: p.coords.longitude}}),
            (e) => postLocation({{error: e.message || "denied"}})
        );
    }}
    </script>
    """
