"""Unit tests for HTML generation across the template catalog."""

from html.parser import HTMLParser

import pytest
from omegaconf import OmegaConf

from safira.contexts.intake import CVDocument, validate_cv_data
from safira.contexts.templating import HTMLGenerator, TemplateRegistry, render_html
from safira.exceptions import RenderError, UnknownTemplateError

ALL_TEMPLATE_IDS = [
    "classic-teal",
    "modern-amber",
    "professional-navy",
    "clean-minimal",
    "elegant-gray",
    "creative-split",
    "minimal-red",
    "modern-sections",
    "pink-creative",
    "teal-sidebar",
    "blue-header",
    "classic",
    "modern",
    "graduate",
]

SECTION_HEADINGS = {
    "summary": "Professional Summary",
    "experience": "Experience",
    "education": "Education",
    "skills": "Skills",
    "languages": "Languages",
    "certificates": "Certificates",
    "references": "References",
}


class TagCounter(HTMLParser):
    """Counts start tags by name in parsed HTML."""

    def __init__(self):
        super().__init__()
        self.counts = {}

    def handle_starttag(self, tag, attrs):
        self.counts[tag] = self.counts.get(tag, 0) + 1


def count_tags(html: str, tag: str) -> int:
    parser = TagCounter()
    parser.feed(html)
    return parser.counts.get(tag, 0)


def heading(title: str) -> str:
    return f">{title}</h2>"


@pytest.fixture(scope="module")
def generator():
    return HTMLGenerator(TemplateRegistry())


@pytest.mark.unit
@pytest.mark.parametrize("template_id", ALL_TEMPLATE_IDS)
def test_every_template_renders_full_content(generator, sample_cv_data, template_id):
    """Every template shows the same logical content for a complete CV."""
    html = generator.render(sample_cv_data, template_id)

    assert html.lstrip().startswith("<!DOCTYPE html>")
    assert "Biruh Tesfaye" in html
    assert "Project Manager" in html
    assert "biruh.tesfaye@email.com" in html
    assert "Save the Children International" in html
    assert "UNICEF Ethiopia" in html
    assert "Mar 2021 – Present" in html
    assert "Jun 2018 – Feb 2021" in html
    assert "Addis Ababa University" in html
    assert "Kobo Toolbox" in html
    assert "Amharic" in html
    assert "PMD Pro Level 1" in html
    for section in ["summary", "experience", "education", "skills", "languages", "certificates"]:
        assert f'data-section="{section}"' in html
    for group in ["Technical", "Software", "Soft Skills"]:
        assert f">{group}</div>" in html


@pytest.mark.unit
@pytest.mark.parametrize("template_id", ALL_TEMPLATE_IDS)
def test_document_is_self_contained(generator, sample_cv_data, template_id):
    html = generator.render(sample_cv_data, template_id)

    assert "@page { size: A4; margin: 0; }" in html
    assert "Noto Sans Ethiopic" in html
    assert "http://" not in html
    assert "https://" not in html
    assert "url(" not in html
    assert count_tags(html, "link") == 0
    assert count_tags(html, "script") == 0
    assert count_tags(html, "img") == 0


@pytest.mark.unit
@pytest.mark.parametrize("template_id", ALL_TEMPLATE_IDS)
def test_empty_sections_are_suppressed(generator, minimal_cv_data, template_id):
    """Absent sections emit neither heading nor container."""
    html = generator.render(minimal_cv_data, template_id)

    assert "Hana Girma" in html
    for section, title in SECTION_HEADINGS.items():
        assert f'data-section="{section}"' not in html
        assert heading(title) not in html


@pytest.mark.unit
@pytest.mark.parametrize("template_id", ["classic-teal", "modern-amber", "clean-minimal"])
def test_section_appears_with_one_entry(generator, minimal_cv_data, template_id):
    without = generator.render(minimal_cv_data, template_id)
    minimal_cv_data["education"] = [{"degree": "BSc", "institution": "Jimma University"}]
    with_education = generator.render(minimal_cv_data, template_id)

    assert heading("Education") not in without
    assert heading("Education") in with_education
    assert "Jimma University" in with_education


@pytest.mark.unit
def test_empty_skill_groups_are_suppressed(generator, minimal_cv_data):
    minimal_cv_data["skills"] = {"technical": [], "software": [], "soft": [{"name": "Negotiation"}]}
    html = generator.render(minimal_cv_data, "clean-minimal")

    assert heading("Skills") in html
    assert ">Soft Skills</div>" in html
    assert ">Technical</div>" not in html
    assert ">Software</div>" not in html


@pytest.mark.unit
@pytest.mark.parametrize("template_id", ["classic-teal", "blue-header", "minimal-red"])
def test_free_text_is_escaped(generator, minimal_cv_data, template_id):
    """Markup in user text renders as inert text, never as elements."""
    payload = "<script>alert(1)</script>"
    minimal_cv_data["professionalSummary"] = {"text": payload}
    minimal_cv_data["experience"] = [
        {
            "jobTitle": "<b>Boss</b>",
            "organization": 'Acme "Holdings" & Sons',
            "responsibilities": [payload],
        }
    ]
    html = generator.render(minimal_cv_data, template_id)

    assert payload not in html
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html
    assert "&lt;b&gt;Boss&lt;/b&gt;" in html
    assert "&amp; Sons" in html
    assert count_tags(html, "script") == 0
    assert count_tags(html, "b") == 0


@pytest.mark.unit
def test_current_entry_never_shows_end_date(generator, minimal_cv_data):
    minimal_cv_data["experience"] = [
        {
            "jobTitle": "Field Officer",
            "startDate": {"month": 5, "year": 2022},
            "endDate": {"month": 1, "year": 2019},
            "isCurrently": True,
        }
    ]
    html = generator.render(minimal_cv_data, "clean-minimal")

    assert "May 2022 – Present" in html
    assert "Jan 2019" not in html


@pytest.mark.unit
def test_legacy_scalar_dates_render_unchanged(generator, minimal_cv_data):
    minimal_cv_data["education"] = [{"degree": "Diploma", "startDate": "2012", "endDate": "Spring 2014"}]
    html = generator.render(minimal_cv_data, "modern-sections")

    assert "2012 – Spring 2014" in html


@pytest.mark.unit
def test_skill_indicators(generator, sample_cv_data):
    """Dot indicators in single-column layouts, meter bars in sidebars."""
    dots = generator.render(sample_cv_data, "clean-minimal")
    meters = generator.render(sample_cv_data, "teal-sidebar")

    assert "●●●●●" in dots
    assert "●●●●○" in dots
    assert "width: 100%" in meters
    assert "width: 80%" in meters


@pytest.mark.unit
@pytest.mark.parametrize(
    "template_id, color",
    [("classic-teal", "#0891B2"), ("minimal-red", "#DC2626"), ("pink-creative", "#EC4899")],
)
def test_theme_colors_applied(generator, minimal_cv_data, template_id, color):
    html = generator.render(minimal_cv_data, template_id)

    assert f"--accent: {color};" in html


@pytest.mark.unit
def test_aliases_render_identically(generator, sample_cv_data):
    assert generator.render(sample_cv_data, "classic") == generator.render(sample_cv_data, "classic-teal")


@pytest.mark.unit
def test_render_is_deterministic(generator, sample_cv_data):
    assert generator.render(sample_cv_data, "modern-amber") == generator.render(sample_cv_data, "modern-amber")


@pytest.mark.unit
def test_ethiopic_text_passes_through(generator, minimal_cv_data):
    minimal_cv_data["personalInfo"]["firstName"] = "ብሩህ"
    minimal_cv_data["personalInfo"]["lastName"] = "ተስፋዬ"
    html = generator.render(minimal_cv_data, "classic-teal")

    assert "ብሩህ ተስፋዬ" in html


@pytest.mark.unit
def test_render_accepts_cv_document(generator, sample_cv_data):
    cv = validate_cv_data(sample_cv_data)

    assert isinstance(cv, CVDocument)
    assert generator.render(cv, "blue-header") == generator.render(sample_cv_data, "blue-header")


@pytest.mark.unit
def test_unknown_template(generator, sample_cv_data):
    with pytest.raises(UnknownTemplateError):
        generator.render(sample_cv_data, "fancy-purple")


@pytest.mark.unit
def test_missing_identity_is_render_error(generator, minimal_cv_data):
    del minimal_cv_data["personalInfo"]["email"]

    with pytest.raises(RenderError):
        generator.render(minimal_cv_data, "classic-teal")


@pytest.mark.unit
def test_binding_failure_is_wrapped(tmp_path, minimal_cv_data):
    """A template referencing a missing field fails as a generic RenderError."""
    layout = tmp_path / "layouts" / "broken.html.jinja"
    layout.parent.mkdir(parents=True)
    layout.write_text("<html>{{ cv.personal_info.middle_name }}</html>")
    catalog = {
        "layouts": {"broken": "layouts/broken.html.jinja"},
        "templates": [
            {
                "id": "broken",
                "display_name": "Broken",
                "layout_family": "broken",
                "category": "Simple",
                "description": "References an undefined field",
                "theme": {
                    "accent_color": "#000000",
                    "secondary_color": "#000000",
                    "tint_color": "#FFFFFF",
                    "section_style": "rule",
                },
            }
        ],
    }
    OmegaConf.save(OmegaConf.create(catalog), tmp_path / "catalog.yaml")

    with pytest.raises(RenderError) as exc_info:
        render_html(minimal_cv_data, "broken", TemplateRegistry(tmp_path))

    assert "middle_name" not in exc_info.value.message


@pytest.mark.unit
@pytest.mark.parametrize("template_id", ["teal-sidebar", "clean-minimal"])
def test_unrated_entries_show_no_indicator(generator, minimal_cv_data, template_id):
    """Skills and languages without a level never get an invented meter or dots."""
    minimal_cv_data["skills"] = {"soft": [{"name": "Negotiation"}]}
    minimal_cv_data["languages"] = [{"name": "Tigrinya"}]
    html = generator.render(minimal_cv_data, template_id)

    assert "Negotiation" in html
    assert "Tigrinya" in html
    assert 'class="meter"' not in html
    assert "●" not in html
    assert "○" not in html
