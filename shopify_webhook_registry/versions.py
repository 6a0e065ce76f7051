"""Admin API version constants and compatibility checks."""


class ApiVersion:
    JULY21 = "2021-07"
    OCTOBER21 = "2021-10"
    JANUARY22 = "2022-01"
    APRIL22 = "2022-04"
    JULY22 = "2022-07"
    OCTOBER22 = "2022-10"
    JANUARY23 = "2023-01"
    APRIL23 = "2023-04"
    JULY23 = "2023-07"
    OCTOBER23 = "2023-10"
    JANUARY24 = "2024-01"
    APRIL24 = "2024-04"
    JULY24 = "2024-07"
    OCTOBER24 = "2024-10"
    UNSTABLE = "unstable"


LATEST_API_VERSION = ApiVersion.OCTOBER24

# Pub/Sub delivery was introduced in this release.
PUBSUB_MIN_VERSION = ApiVersion.JULY21


def _version_key(version):
    year, _, month = version.strip().partition("-")
    return int(year), int(month)


def version_compatible(reference, current):
    """Return True if ``current`` is ``reference`` or a later release.

    ``unstable`` is always compatible, as it tracks the newest schema.
    """
    if current == ApiVersion.UNSTABLE:
        return True
    return _version_key(current) >= _version_key(reference)
