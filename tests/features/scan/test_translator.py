from wcag_audit.features.scan.services.translator import (
    PLACEHOLDER_HELP,
    PLACEHOLDER_TITLE,
    TOPICS,
    simplify_description,
    translate,
    translate_title,
)


class TestTranslateTitle:
    def test_exact_title(self):
        assert translate_title("Document does not have a main landmark") == "Pas de balise <main> principale"

    def test_trailing_period_is_ignored(self):
        assert translate_title("Links do not have a discernible name.") == "Liens sans texte descriptif"

    def test_unknown_title_is_returned_unchanged(self):
        assert translate_title("Something new") == "Something new"


class TestSimplifyDescription:
    def test_cuts_at_learn_more(self):
        text = "Low-contrast text is difficult to read. [Learn more about contrast](https://web.dev)"
        assert simplify_description(text) == "Low-contrast text is difficult to read."

    def test_empty_description_gets_placeholder(self):
        assert simplify_description("") == PLACEHOLDER_HELP
        assert simplify_description("[Learn more](https://web.dev)") == PLACEHOLDER_HELP


class TestTranslate:
    def test_rule_code_gives_structured_help(self):
        message = translate("color-contrast", "Background and foreground colors do not have a sufficient contrast ratio.", "")

        assert message.title == "Contraste des couleurs insuffisant"
        assert message.help == TOPICS["contrast"].render_help()
        assert message.help.startswith("Problème : ")
        assert "\nImpact : " in message.help
        assert "\nSolution : " in message.help
        assert "\nExemple : " in message.help

    def test_axe_rule_code_with_english_title(self):
        message = translate("image-alt", "Images must have alternate text", "Ensures <img> elements have alternate text")
        assert message.title == TOPICS["alt"].title

    def test_keyword_heuristic(self):
        message = translate("custom-rule", "Some check", "Elements must meet minimum color contrast ratio thresholds")
        assert message.title == TOPICS["contrast"].title

    def test_exact_title_without_topic(self):
        message = translate("button-name", "Buttons do not have an accessible name", "Desc. [Learn more](x)")
        assert message.title == "Boutons sans nom accessible"
        assert message.help == "Desc."

    def test_fallback_keeps_english_text(self):
        message = translate("meta-viewport", "Zooming is disabled", "Users need to zoom. [Learn more](https://web.dev)")
        assert message.title == "Zooming is disabled"
        assert message.help == "Users need to zoom."

    def test_empty_input(self):
        message = translate(None, None, None)
        assert message.title == PLACEHOLDER_TITLE
        assert message.help == PLACEHOLDER_HELP

    def test_same_input_same_output(self):
        args = ("heading-order", "Heading elements are not in a sequentially-descending order", "x")
        assert translate(*args) == translate(*args)
