from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Any, Optional, List, Dict


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for admin operations (user provisioning, webhook writes)
    reports_bucket: str = "mnidler-test-reports"

    # Razorpay
    razorpay_webhook_secret: Optional[str] = None

    # Coupons
    valid_coupon_codes: str = "NAIROBI"  # comma separated legacy codes accepted without a coupons row
    coupon_rate_limit: str = "20/minute"

    # SMTP (welcome email)
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from: str = '"ClassMent Team" <teamclassment@gmail.com>'
    smtp_timeout_seconds: float = 10.0
    welcome_email_cc: Optional[str] = "ceo@theclassment.com"
    welcome_email_bcc: Optional[str] = "teamclassment@gmail.com"

    # Webhook profile provisioning: wait for the signup trigger to create the profile row
    profile_poll_timeout_seconds: float = 10.0
    profile_poll_initial_delay_seconds: float = 0.25
    profile_poll_max_delay_seconds: float = 2.0

    # Payments page plan catalog; payment_link is the hosted Razorpay page for the plan
    payment_plans: List[Dict[str, Any]] = [
        {
            "name": "Basic",
            "price": 1499,
            "original_price": 2400,
            "payment_link": "https://rzp.io/rzp/fKp1PsZD",
            "description": "You can access psychometric test and know about your core personality which you can refer for a lifetime.",
            "features": [
                {"text": "Psychometric Test developed by 25 PhDs", "included": True},
                {"text": "5 Career Fields that fits your personality", "included": True},
                {"text": "34 page detailed report about your personality", "included": True},
                {"text": "Career Guidance Session", "included": False},
                {"text": "Access to Career Exploration tool", "included": False},
                {"text": "Actionable roadmap", "included": False},
            ],
        },
        {
            "name": "Pro",
            "price": 4999,
            "original_price": 10500,
            "payment_link": "https://rzp.io/rzp/kQw7uW92",
            "badge": "Most Picked",
            "description": "Basic plan + Career Manager to help you understand the report, work on your CV, LinkedIn and help you with companies",
            "features": [
                {"text": "Psychometric Test developed by 25 PhDs", "included": True},
                {"text": "5 Career Fields that fits your personality", "included": True},
                {"text": "34 page detailed report about your personality", "included": True},
                {"text": "2 x Career Guidance Session with a Internationally Certified Counselor", "included": True},
                {"text": "Access to our signature Career Exploration tool with job roles and earning potential", "included": True},
                {"text": "Actionable roadmap with 3 month and 12 month plan", "included": True},
            ],
        },
        {
            "name": "Premium",
            "price": 8499,
            "original_price": 15800,
            "payment_link": "https://rzp.io/rzp/6359V3S2",
            "badge": "Recommended",
            "description": "Our best plan, get benefits worth ₹15.8k+ with actionable insights on getting 30% hike in salary and job search support.",
            "features": [
                {"text": "All things Pro +", "included": True},
                {"text": "Personal Career Manager for 3 months from career exploration to job support", "included": True},
                {"text": "Actionable guidance and management of your career by an International Career Coach", "included": True},
                {"text": "CV review & 2x Mock interview with industry leader", "included": True},
                {"text": "Referal from an industry leader in your field", "included": True},
                {"text": "Guaranteed Work Opportunities", "included": True},
            ],
        },
    ]

    # Report page booking links, keyed by redeemed coupon code
    booking_links: Dict[str, str] = {"NAIROBI": "https://cal.com/sandra-anyango/60min?duration=60"}
    default_booking_link: str = "https://cal.com/unnathi-pai/career-counselling-with-unnathi"

    # App
    app_name: str = "classment-backend"
    site_url: str = "http://localhost:3000"
    frontend_dir: Optional[str] = None  # built frontend served behind the access gate
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"
    rate_limit_enabled: bool = True

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def get_valid_coupon_codes(self) -> List[str]:
        return [c.strip() for c in self.valid_coupon_codes.split(",") if c.strip()]

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_password)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
