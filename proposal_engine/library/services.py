"""Service library.

Pre-written service content that is inserted into proposals verbatim. The
library is versioned as a whole; entries are never mutated at runtime and
every accessor hands out a deep copy.
"""

from typing import Dict, List, Optional, Iterable

from proposal_engine.models import (
    Investment,
    InvestmentModel,
    ServiceSubsection,
    ServiceTemplate,
)

SERVICE_LIBRARY_VERSION = "2.0.0"


def _sub(number: int, title: str, body: str, editable: bool = False) -> ServiceSubsection:
    return ServiceSubsection(
        number=number,
        title=title,
        body_markdown=body,
        allow_client_specific_edits=editable,
    )


_SERVICE_LIBRARY: Dict[str, ServiceTemplate] = {
    "marketing_machine": ServiceTemplate(
        service_key="marketing_machine",
        display_name="THE MARKETING MACHINE",
        subsections=[
            _sub(1, "Discovery & Research", (
                "- Stakeholder interviews to understand your business goals and challenges\n"
                "- Competitive landscape analysis to identify positioning opportunities\n"
                "- Customer research to validate assumptions about your target market\n"
                "- Market analysis to understand trends and opportunities"
            )),
            _sub(2, "Who You Are (Brand Foundation)", (
                "- Brand positioning framework that differentiates you from competitors\n"
                "- Core values and brand attributes that guide all communications\n"
                "- Brand personality and tone of voice guidelines\n"
                "- Elevator pitch and messaging hierarchy"
            )),
            _sub(3, "Who You Help (Audience Definition)", (
                "- Ideal Customer Profile (ICP) definition with demographics and psychographics\n"
                "- Customer journey mapping from awareness to advocacy\n"
                "- Pain points, goals, and motivations analysis\n"
                "- Decision-making criteria and buying process documentation"
            )),
            _sub(4, "How You Help (Value Proposition)", (
                "- Unique value proposition that resonates with your target audience\n"
                "- Service/product positioning and messaging architecture\n"
                "- Proof points and credibility builders\n"
                "- Objection handling and competitive differentiation"
            )),
            _sub(5, "How You Tell the World (Marketing Strategy)", (
                "- Marketing funnel architecture (awareness, consideration, decision, retention)\n"
                "- Channel strategy and prioritization based on your audience\n"
                "- Content strategy and editorial calendar framework\n"
                "- Lead generation and nurture sequence blueprints\n"
                "- Campaign frameworks and messaging templates"
            )),
            _sub(6, "Making Sure It Works (Measurement)", (
                "- KPI framework aligned to business goals\n"
                "- Analytics and tracking implementation plan\n"
                "- Reporting dashboard design and metrics definition\n"
                "- Testing and optimization roadmap"
            )),
            _sub(7, "Implementation & Tools", (
                "- Marketing playbook with all frameworks and templates\n"
                "- Brand guidelines and messaging library\n"
                "- Marketing technology stack recommendations\n"
                "- 90-day implementation roadmap with priorities"
            )),
        ],
        investment=Investment(
            model=InvestmentModel.ONE_TIME,
            amount=7500,
            currency="USD",
            notes="Payment terms: 50% due at contract signing, 50% due upon completion of strategic deliverables.",
            render_hint="$7,500 one-time investment",
        ),
        timeline="Typically completed over 6-8 weeks with regular check-ins and feedback sessions.",
        outcome=(
            "You will have a complete marketing foundation that guides all decisions, "
            "eliminates guesswork, and ensures every marketing dollar is spent strategically."
        ),
    ),
    "internal_comms": ServiceTemplate(
        service_key="internal_comms",
        display_name="INTERNAL COMMUNICATIONS",
        subsections=[
            _sub(1, "Communication Audit", (
                "- Employee survey to assess current communication effectiveness\n"
                "- Leadership interview to understand goals and challenges\n"
                "- Communication channel inventory and usage analysis\n"
                "- Gap analysis between current and desired state"
            )),
            _sub(2, "Internal Communications Strategy", (
                "- Communication objectives aligned to business goals\n"
                "- Audience segmentation (departments, roles, locations)\n"
                "- Channel strategy and hierarchy (when to use what)\n"
                "- Message architecture and key themes"
            )),
            _sub(3, "System Design & Implementation", (
                "- Communication calendar and cadence recommendations\n"
                "- Email templates and newsletter formats\n"
                "- Meeting rhythm and agenda templates\n"
                "- Internal communications playbook with guidelines and best practices"
            )),
        ],
        investment=Investment(
            model=InvestmentModel.ONE_TIME,
            amount=2500,
            currency="USD",
            notes="Payment due upon completion.",
            render_hint="$2,500 one-time investment",
        ),
        timeline="Typically completed over 4-6 weeks.",
        outcome="Your team will have clear, consistent communication channels that keep everyone aligned and engaged.",
    ),
    "seo_hosting": ServiceTemplate(
        service_key="seo_hosting",
        display_name="SEO & HOSTING",
        subsections=[
            _sub(1, "Technical SEO Audit", (
                "- Site architecture and crawlability analysis\n"
                "- Page speed and Core Web Vitals assessment\n"
                "- Mobile responsiveness and usability review\n"
                "- Broken links, redirects, and error identification\n"
                "- XML sitemap and robots.txt optimization"
            )),
            _sub(2, "On-Page SEO Optimization", (
                "- Keyword research and mapping to pages\n"
                "- Title tags and meta descriptions optimization\n"
                "- Header tag structure and hierarchy improvement\n"
                "- Schema markup implementation for rich snippets\n"
                "- Image optimization (alt tags, compression, lazy loading)\n"
                "- Internal linking strategy and implementation"
            )),
            _sub(3, "Managed WordPress Hosting", (
                "- Premium hosting setup on optimized servers\n"
                "- SSL certificate installation and HTTPS configuration\n"
                "- Automatic daily backups with 30-day retention\n"
                "- Security monitoring and malware protection\n"
                "- WordPress core and plugin updates management\n"
                "- Uptime monitoring and performance optimization"
            )),
            _sub(4, "Local SEO (if applicable)", (
                "- Google Business Profile optimization\n"
                "- Local citation building and NAP consistency\n"
                "- Location-based keyword targeting"
            ), editable=True),
        ],
        investment=Investment(
            model=InvestmentModel.ONE_TIME,
            amount=3500,
            currency="USD",
            notes="Managed hosting included for first 12 months; $50/month thereafter.",
            render_hint="$3,500 one-time investment (includes 12 months hosting)",
        ),
        timeline="SEO audit and optimization completed within 2-3 weeks. Hosting is ongoing with immediate setup.",
        outcome=(
            "Your website will be technically sound, load quickly, rank better in search "
            "results, and run reliably with minimal downtime."
        ),
    ),
    "digital_upgrades": ServiceTemplate(
        service_key="digital_upgrades",
        display_name="DIGITAL UPGRADES",
        subsections=[
            _sub(1, "Website & UX Audit", (
                "- Heuristic evaluation of user experience and usability\n"
                "- Conversion funnel analysis and drop-off identification\n"
                "- Mobile experience and responsive design review\n"
                "- Content audit and information architecture assessment\n"
                "- Accessibility compliance review (WCAG guidelines)"
            )),
            _sub(2, "CRM & Marketing Automation", (
                "- CRM selection and implementation (if needed)\n"
                "- Contact management and segmentation setup\n"
                "- Form integration and lead capture optimization\n"
                "- Email marketing platform integration\n"
                "- Marketing automation workflow design and setup"
            ), editable=True),
            _sub(3, "Custom Development & Enhancements", (
                "- Custom functionality based on your specific needs\n"
                "- Third-party API integrations (payment, shipping, etc.)\n"
                "- Advanced form builders and calculators\n"
                "- Member portals or customer dashboards\n"
                "- E-commerce enhancements (if applicable)"
            ), editable=True),
            _sub(4, "Optimization & Testing", (
                "- A/B testing setup for key conversion points\n"
                "- Analytics implementation and goal tracking\n"
                "- Heat mapping and user behavior analysis\n"
                "- Performance optimization and speed improvements"
            )),
        ],
        investment=Investment(
            model=InvestmentModel.ONE_TIME,
            amount=5000,
            currency="USD",
            notes=(
                "Starting price - final pricing determined after discovery phase. "
                "Payment terms: 50% upfront, 50% upon completion."
            ),
            render_hint="Starting at $5,000 (scope-dependent)",
        ),
        timeline="Varies based on scope - typically 4-8 weeks depending on complexity.",
        outcome=(
            "Your digital presence will be a powerful business asset that generates leads, "
            "converts visitors, and integrates seamlessly with your operations."
        ),
    ),
    "828_marketing": ServiceTemplate(
        service_key="828_marketing",
        display_name="THE 828 MARKETING PLAN",
        subsections=[
            _sub(1, "Content Marketing", (
                "- 4-6 blog posts or articles per month (800-1200 words each)\n"
                "- SEO optimization for all content (keywords, meta tags, internal linking)\n"
                "- Content strategy aligned to your marketing funnel\n"
                "- Topic ideation based on audience needs and search trends\n"
                "- Editorial calendar management and publishing"
            )),
            _sub(2, "Email Marketing", (
                "- 2-4 email campaigns per month (newsletters, promotions, nurture)\n"
                "- Email design and copywriting optimized for engagement\n"
                "- List segmentation and personalization\n"
                "- A/B testing for subject lines and content\n"
                "- Performance tracking and optimization"
            )),
            _sub(3, "Social Media Management", (
                "- Content creation and scheduling for 2-3 platforms\n"
                "- Post copywriting and design/graphics\n"
                "- Community engagement and monitoring\n"
                "- Social media calendar aligned with campaigns"
            ), editable=True),
            _sub(4, "Campaign Management", (
                "- Quarterly campaign planning and execution\n"
                "- Landing page copywriting and optimization\n"
                "- Campaign asset creation (graphics, emails, ads)\n"
                "- Cross-channel coordination"
            )),
            _sub(5, "Reporting & Optimization", (
                "- Monthly performance report with key metrics\n"
                "- Analytics review and insights\n"
                "- Quarterly strategy review and planning session\n"
                "- Ongoing optimization based on data"
            )),
        ],
        investment=Investment(
            model=InvestmentModel.MONTHLY,
            amount=3000,
            currency="USD",
            notes="3-month minimum commitment. First month due at contract signing.",
            render_hint="$3,000/month retainer",
        ),
        timeline="Ongoing monthly retainer. Content delivered throughout the month per editorial calendar.",
        outcome=(
            "Consistent, strategic marketing that keeps you visible, generates leads, and "
            "nurtures relationships - all without you lifting a finger."
        ),
    ),
    "fractional_cmo": ServiceTemplate(
        service_key="fractional_cmo",
        display_name="FRACTIONAL CMO",
        subsections=[
            _sub(1, "Strategic Planning & Leadership", (
                "- Marketing strategy development and roadmap planning\n"
                "- Budget planning and resource allocation guidance\n"
                "- Goal setting and KPI definition aligned to business objectives\n"
                "- Quarterly and annual planning sessions\n"
                "- Executive-level strategic counsel and decision-making support"
            )),
            _sub(2, "Team Management & Development", (
                "- Marketing team leadership and coordination\n"
                "- Agency and vendor management and accountability\n"
                "- Process development and workflow optimization\n"
                "- Skills gap analysis and hiring recommendations\n"
                "- Performance reviews and professional development"
            )),
            _sub(3, "Campaign Oversight & Optimization", (
                "- Marketing campaign strategy and oversight\n"
                "- Channel mix optimization and budget allocation\n"
                "- Creative direction and brand consistency enforcement\n"
                "- Technology stack evaluation and recommendations\n"
                "- Testing roadmap and conversion optimization"
            )),
            _sub(4, "Reporting & Accountability", (
                "- Monthly executive reporting with insights and recommendations\n"
                "- Marketing dashboard design and KPI tracking\n"
                "- ROI analysis and attribution modeling\n"
                "- Board presentation support (if applicable)\n"
                "- Competitive intelligence and market analysis"
            )),
            _sub(5, "Availability & Communication", (
                "- 8-10 hours per month of strategic work\n"
                "- Weekly check-ins and ad-hoc availability via email/Slack\n"
                "- Quarterly in-person or extended video strategy sessions\n"
                "- Access to our full team for execution support"
            ), editable=True),
        ],
        investment=Investment(
            model=InvestmentModel.MONTHLY,
            amount=5000,
            currency="USD",
            notes="6-month minimum commitment. First month due at contract signing.",
            render_hint="$5,000/month retainer (8-10 hours)",
        ),
        timeline="Ongoing monthly engagement. Typically 6-12 month initial commitment.",
        outcome=(
            "You will have senior marketing leadership driving strategy, managing execution, "
            "and ensuring every marketing dollar delivers measurable results."
        ),
    ),
}


def get_template(service_key: str) -> Optional[ServiceTemplate]:
    """
    Get a service template by key.

    Args:
        service_key: Service identifier

    Returns:
        Deep copy of the template, or None for an unknown key
    """
    template = _SERVICE_LIBRARY.get(service_key)
    if template is None:
        return None
    return template.model_copy(deep=True)


def list_templates() -> List[ServiceTemplate]:
    """All templates in catalog order, as deep copies."""
    return [t.model_copy(deep=True) for t in _SERVICE_LIBRARY.values()]


def get_display_names(service_keys: Iterable[str]) -> List[str]:
    """Display names for the given keys; unknown keys fall back to the key itself."""
    names = []
    for key in service_keys:
        template = _SERVICE_LIBRARY.get(key)
        names.append(template.display_name if template else key)
    return names
