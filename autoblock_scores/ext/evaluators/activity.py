from ...evaluation import Detection, EvaluationContext
from ...links import has_links, link_domains


class ActivitiesBlank:
    type = "activities_blank"
    description = "User has not created contents"

    def detect(self, context: EvaluationContext) -> Detection:
        return Detection(context.content_count == 0, context.email_domains)


class LinksInCommentsOrAbout:
    type = "links_in_comments_or_about"
    description = "Comments or about section contains links"

    def detect(self, context: EvaluationContext) -> Detection:
        return Detection(has_links(context.texts()), context.email_domains)


class LinksInCommentsOrAboutWithDomains:
    """Lists are matched against the linked domains instead of the email."""

    type = "links_in_comments_or_about_with_domains"
    description = "Comments or about section contains links with domains in allowlists or blocklists"

    def detect(self, context: EvaluationContext) -> Detection:
        domains = link_domains(context.texts())
        return Detection(bool(domains), domains)
