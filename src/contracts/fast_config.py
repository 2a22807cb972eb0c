from typing import List
from urllib.parse import urlsplit

from pydantic import BaseModel, Field

from contracts.endpoint import Endpoint


class Location(BaseModel):
    country: str = ""
    city: str = ""


class ClientInfo(BaseModel):
    """
    Information on the client requesting the configuration.
    """

    # The ISP's Autonomous System Number, e.g. "209" for CenturyLink
    asn: str = ""
    isp: str = ""
    location: Location = Field(default_factory=Location)
    ip: str = ""


class Target(BaseModel):
    """
    A file used to measure download speed.
    """

    url: str
    location: Location = Field(default_factory=Location)
    # Currently set to the same value as url
    name: str = ""


class FastConfig(BaseModel):
    """
    Data model representing an api.fast.com configuration payload.
    """

    client: ClientInfo = Field(default_factory=ClientInfo)
    targets: List[Target] = Field(default_factory=list)

    def endpoints(self) -> List[Endpoint]:
        """
        Convert targets into endpoints labelled by their host, preserving order.
        """
        return [Endpoint(url=t.url, label=host_label(t.url)) for t in self.targets]


def host_label(url: str) -> str:
    try:
        host = urlsplit(url).netloc
    except ValueError as e:
        return str(e)
    return host or url
