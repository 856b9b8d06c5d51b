"""AI Visibility Checker: score how visible a domain is in AI-generated answers."""
