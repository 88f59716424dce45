"""
Violation Translator

Turns raw audit-engine rule codes and English text into the French copy
shown in reports. Pure functions over static tables: no I/O, no state.

Lookup order:
    1. exact rule code, then exact engine title
    2. keyword heuristics on the description and title
    3. raw description cut at the "[Learn more" marker, or a placeholder
"""
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional

PLACEHOLDER_TITLE = "Problème détecté"
PLACEHOLDER_HELP = "Problème d'accessibilité détecté"

_LEARN_MORE = re.compile(r"\[?\s*learn more", re.IGNORECASE)


@dataclass(frozen=True)
class TranslatedMessage:
    title: str
    help: str


@dataclass(frozen=True)
class Topic:
    title: str
    problem: str
    impact: str
    solution: str
    example: str

    def render_help(self) -> str:
        return (
            f"Problème : {self.problem}\n"
            f"Impact : {self.impact}\n"
            f"Solution : {self.solution}\n"
            f"Exemple : {self.example}"
        )


TOPICS = MappingProxyType({
    "landmark": Topic(
        title="Pas de balise <main> principale",
        problem="Votre page ne contient pas de balise <main> identifiant le contenu principal.",
        impact="Les lecteurs d'écran ne peuvent pas sauter directement au contenu principal.",
        solution="Entourez le contenu principal de la page d'une unique balise <main>.",
        example="<main>…contenu principal…</main>",
    ),
    "list": Topic(
        title="Listes mal structurées",
        problem="Certaines listes contiennent d'autres éléments que des <li>.",
        impact="Les technologies d'assistance annoncent un nombre d'éléments erroné.",
        solution="Les listes <ul> et <ol> doivent contenir uniquement des éléments <li>.",
        example="<ul><li>Accueil</li><li>Contact</li></ul>",
    ),
    "heading": Topic(
        title="Titres dans le désordre (H1, H2, H3...)",
        problem="Les niveaux de titres ne se suivent pas dans l'ordre.",
        impact="La structure du document est incompréhensible pour la navigation par titres.",
        solution="Ne sautez pas de niveaux : un H3 doit suivre un H2, un H2 un H1.",
        example="<h1>Produits</h1> <h2>Chaussures</h2> <h3>Running</h3>",
    ),
    "contrast": Topic(
        title="Contraste des couleurs insuffisant",
        problem="Le contraste entre le texte et l'arrière-plan est trop faible.",
        impact="Le texte est difficile à lire pour les personnes malvoyantes.",
        solution="Visez un ratio minimum de 4.5:1 pour le texte courant et 3:1 pour le grand texte.",
        example="color: #595959 sur fond #ffffff (ratio 7:1)",
    ),
    "link": Topic(
        title="Liens sans texte descriptif",
        problem="Certains liens n'ont pas de texte visible ou accessible.",
        impact="Un lecteur d'écran annonce seulement « lien », sans destination.",
        solution="Ajoutez un texte descriptif ou un attribut aria-label aux liens.",
        example='<a href="/contact" aria-label="Nous contacter"><svg>…</svg></a>',
    ),
    "form_label": Topic(
        title="Champs de formulaire sans labels",
        problem="Des champs de formulaire n'ont pas de label associé.",
        impact="Les utilisateurs de lecteurs d'écran ne savent pas quoi saisir.",
        solution='Associez chaque champ à un <label for="..."> ou à un aria-label.',
        example='<label for="email">Email</label> <input id="email" type="email">',
    ),
    "alt": Topic(
        title="Images sans attribut alt",
        problem="Des images n'ont pas d'attribut alt.",
        impact="Le contenu des images est invisible pour les personnes aveugles.",
        solution="Ajoutez un attribut alt décrivant l'image, ou alt=\"\" si elle est décorative.",
        example='<img src="logo.png" alt="Logo de l\'entreprise">',
    ),
})

# Lighthouse audit ids and axe-core rule ids share most names
CODE_TOPICS = MappingProxyType({
    "landmark-one-main": "landmark",
    "list": "list",
    "listitem": "list",
    "heading-order": "heading",
    "color-contrast": "contrast",
    "link-name": "link",
    "label": "form_label",
    "image-alt": "alt",
})

TITLE_TRANSLATIONS = MappingProxyType({
    "Document does not have a main landmark": "Pas de balise <main> principale",
    "Lists do not contain only <li> elements and script supporting elements (<script> and <template>).":
        "Listes mal structurées",
    "Lists do not contain only <li> elements": "Listes mal structurées",
    "Heading elements are not in a sequentially-descending order": "Titres dans le désordre (H1, H2, H3...)",
    "Background and foreground colors do not have a sufficient contrast ratio": "Contraste des couleurs insuffisant",
    "Links do not have a discernible name": "Liens sans texte descriptif",
    "Form elements do not have associated labels": "Champs de formulaire sans labels",
    "Image elements do not have [alt] attributes": "Images sans attribut alt",
    "[aria-*] attributes do not match their roles": "Attributs ARIA incorrects",
    "Buttons do not have an accessible name": "Boutons sans nom accessible",
})

TITLE_TOPICS = MappingProxyType({
    "Document does not have a main landmark": "landmark",
    "Lists do not contain only <li> elements": "list",
    "Heading elements are not in a sequentially-descending order": "heading",
    "Background and foreground colors do not have a sufficient contrast ratio": "contrast",
    "Links do not have a discernible name": "link",
    "Form elements do not have associated labels": "form_label",
    "Image elements do not have [alt] attributes": "alt",
})

# Checked in order; first hit wins
KEYWORD_TOPICS = (
    ("main landmark", "landmark"),
    ("list structure", "list"),
    ("<li>", "list"),
    ("heading order", "heading"),
    ("sequentially-descending", "heading"),
    ("contrast ratio", "contrast"),
    ("link text", "link"),
    ("discernible name", "link"),
    ("form elements", "form_label"),
    ("associated label", "form_label"),
    ("alt attribute", "alt"),
    ("[alt]", "alt"),
)


def _strip_title(title: str) -> str:
    return title.strip().rstrip(".")


def _match_topic(code: str, title: str, description: str) -> Optional[str]:
    if code in CODE_TOPICS:
        return CODE_TOPICS[code]
    if _strip_title(title) in TITLE_TOPICS:
        return TITLE_TOPICS[_strip_title(title)]

    haystack = f"{description}\n{title}".lower()
    for keyword, topic in KEYWORD_TOPICS:
        if keyword in haystack:
            return topic
    return None


def translate_title(title: str) -> str:
    title = (title or "").strip()
    if title in TITLE_TRANSLATIONS:
        return TITLE_TRANSLATIONS[title]
    if _strip_title(title) in TITLE_TRANSLATIONS:
        return TITLE_TRANSLATIONS[_strip_title(title)]
    return title


def simplify_description(description: str) -> str:
    description = description or ""
    return _LEARN_MORE.split(description, maxsplit=1)[0].strip() or PLACEHOLDER_HELP


def translate(code: Optional[str], raw_title: Optional[str], raw_description: Optional[str]) -> TranslatedMessage:
    code = (code or "").strip()
    raw_title = raw_title or ""
    raw_description = raw_description or ""

    topic_key = _match_topic(code, raw_title, raw_description)
    title = translate_title(raw_title)

    if topic_key is None:
        return TranslatedMessage(
            title=title or PLACEHOLDER_TITLE,
            help=simplify_description(raw_description),
        )

    topic = TOPICS[topic_key]
    if title == raw_title.strip():
        # No exact title translation: use the topic's title
        title = topic.title
    return TranslatedMessage(title=title, help=topic.render_help())
