"""
Logging setup shared by the web app and the relay job.

GroupMe user tokens travel as ?token= / X-Access-Token and Twitter tokens
as Bearer headers; none of them may reach the logs.
"""
import logging
import re

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class SensitiveDataFilter(logging.Filter):
    """Redacts access tokens and bearer tokens from log messages"""

    TOKEN_PARAM = re.compile(r"((?:access_token|token)=)[^&\s'\"]+")
    TOKEN_FIELD = re.compile(
        r"((?:X-Access-Token|access_token)['\"]?\s*[:=]\s*['\"]?)[A-Za-z0-9_\-.]+",
        re.IGNORECASE
    )
    BEARER = re.compile(r"(Bearer\s+)[A-Za-z0-9_\-.%]+")

    def filter(self, record):
        if isinstance(record.msg, str):
            msg = self.TOKEN_PARAM.sub(r"\1[REDACTED]", record.msg)
            msg = self.TOKEN_FIELD.sub(r"\1[REDACTED]", msg)
            record.msg = self.BEARER.sub(r"\1[REDACTED]", msg)
        return True


def configure_logging(level: str = "INFO"):
    """basicConfig plus the redaction filter on root handlers and httpx"""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)

    redactor = SensitiveDataFilter()
    for handler in logging.root.handlers:
        handler.addFilter(redactor)

    # httpx logs every request URL, including ?token= on bot creation
    logging.getLogger('httpx').addFilter(redactor)
