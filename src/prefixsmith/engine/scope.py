"""Scope resolution: which parser to use and what to replace."""

from .models import DocumentScope, Dialect, Granularity, ResolvedScope, Trigger

CSS_SCOPE = "source.css"
SCSS_SCOPE = "source.css.scss"
HTML_SCOPE = "text.html.basic"


class ScopeResolver:
    """Maps a grammar scope and selection state to a dialect and granularity."""

    def __init__(self, html_enabled: bool = False):
        """
        Initialize scope resolver.

        Args:
            html_enabled: Treat HTML documents as a supported scope for the
                save hook and process them with the structural HTML processor.
        """
        self.html_enabled = html_enabled

    @property
    def supported_scopes(self) -> frozenset[str]:
        scopes = {CSS_SCOPE, SCSS_SCOPE}
        if self.html_enabled:
            scopes.add(HTML_SCOPE)
        return frozenset(scopes)

    def is_supported(self, scope_name: str) -> bool:
        """Whether the save hook may run on documents of this scope."""
        return scope_name in self.supported_scopes

    def classify(self, scope_name: str) -> DocumentScope:
        if scope_name == CSS_SCOPE:
            return DocumentScope.CSS
        if scope_name == SCSS_SCOPE:
            return DocumentScope.SCSS
        if self.html_enabled and _is_html(scope_name):
            return DocumentScope.HTML
        return DocumentScope.UNSUPPORTED

    def resolve(
        self, scope_name: str, has_selection: bool, trigger: Trigger = Trigger.MANUAL
    ) -> ResolvedScope:
        """
        Pick the dialect and granularity for an invocation.

        Args:
            scope_name: Grammar scope of the document
            has_selection: Whether a non-empty selection exists
            trigger: Save-triggered runs always cover the whole document

        Returns:
            ResolvedScope for the invocation
        """
        selection = has_selection and trigger is Trigger.MANUAL
        granularity = Granularity.SELECTION if selection else Granularity.DOCUMENT

        if scope_name == CSS_SCOPE:
            dialect = Dialect.SAFE_CSS
        elif self.html_enabled and _is_html(scope_name):
            # A fragment cannot be processed as an HTML document; selected
            # text inside HTML is treated as embedded CSS.
            dialect = Dialect.SAFE_CSS if selection else Dialect.HTML
        else:
            dialect = Dialect.SCSS

        return ResolvedScope(dialect=dialect, granularity=granularity)


def _is_html(scope_name: str) -> bool:
    return scope_name == "text.html" or scope_name.startswith("text.html.")
