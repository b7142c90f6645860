from ...evaluation import Detection, EvaluationContext


class AboutBlank:
    type = "about_blank"
    description = "About user section is blank"

    def detect(self, context: EvaluationContext) -> Detection:
        return Detection(context.about_blank, context.email_domains)


class EmailUnconfirmed:
    type = "email_unconfirmed"
    description = "User email is not confirmed"

    def detect(self, context: EvaluationContext) -> Detection:
        return Detection(not context.confirmed, context.email_domains)


class EmailDomain:
    """Always satisfied; the allow/block lists decide on the email domain."""

    type = "email_domain"
    description = "Email domain included in list"

    def detect(self, context: EvaluationContext) -> Detection:
        return Detection(True, context.email_domains)
