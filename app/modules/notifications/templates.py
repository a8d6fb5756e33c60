from html import escape

WELCOME_SUBJECT = "Welcome to ClassMent!"
DASHBOARD_URL = "https://theclassment.vercel.app/"

_WELCOME_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Welcome to ClassMent</title>
  <style>
    body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; background-color: #f4f4f4; margin: 0; padding: 0; }}
    .container {{ max-width: 600px; margin: 20px auto; padding: 20px; background-color: #ffffff; border-radius: 5px; box-shadow: 0 0 10px rgba(0, 0, 0, 0.1); }}
    h1 {{ color: #0066FF; }}
    .cta-button {{ display: inline-block; padding: 10px 20px; background-color: #0066FF; color: #ffffff !important; text-decoration: none; border-radius: 5px; margin-top: 20px; }}
  </style>
</head>
<body>
  <div class="container">
    <h1>Welcome to ClassMent {name}!</h1>
    <p>Thank you for joining ClassMent, your gateway to a successful career journey.</p>
    <p>At ClassMent, we're dedicated to helping you navigate your career path with confidence. Our comprehensive approach includes:</p>
    <ul>
      <li>Personalized career assessments</li>
      <li>Expert guidance from industry professionals</li>
      <li>Access to our innovative Explorer Graph tool</li>
      <li>Opportunities for real-world experience through externships</li>
    </ul>
    <p>We're excited to help you discover your potential and achieve your career goals.</p>
    <p>Watch out for an email with your test details coming soon!</p>
    <a href="{dashboard_url}" class="cta-button" style="color: #ffffff !important;">Access Your Dashboard</a>
  </div>
</body>
</html>
"""

_WELCOME_TEXT = """Welcome to ClassMent {name}!

Thank you for joining ClassMent, your gateway to a successful career journey.
Watch out for an email with your test details coming soon!

Access your dashboard: {dashboard_url}
"""


def render_welcome_html(name: str) -> str:
    return _WELCOME_HTML.format(name=escape(name or ""), dashboard_url=DASHBOARD_URL)


def render_welcome_text(name: str) -> str:
    return _WELCOME_TEXT.format(name=name or "", dashboard_url=DASHBOARD_URL)
