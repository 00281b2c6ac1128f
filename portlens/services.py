"""
Service hints for PortLens.

Maps well-known and conventional development ports to the service that
usually listens there. Used only for display; a hint never changes how a
process is labelled or classified.
"""

from __future__ import annotations

from typing import Optional


# Well-known TCP port to service mappings
PORT_SERVICES: dict[int, str] = {
    21: "FTP",
    22: "SSH",
    23: "TELNET",
    25: "SMTP",
    53: "DNS",
    80: "HTTP",
    110: "POP3",
    143: "IMAP",
    389: "LDAP",
    443: "HTTPS",
    445: "SMB",
    465: "SMTPS",
    587: "SMTP",
    636: "LDAPS",
    993: "IMAPS",
    995: "POP3S",
    1433: "MSSQL",
    1521: "ORACLE",
    1883: "MQTT",
    3306: "MYSQL",
    3389: "RDP",
    5222: "XMPP",
    5432: "POSTGRES",
    5672: "AMQP",
    6379: "REDIS",
    8080: "HTTP-ALT",
    8443: "HTTPS-ALT",
    8883: "MQTT-TLS",
    9200: "ELASTIC",
    27017: "MONGODB",
}

# Default ports of common dev servers
DEV_PORT_SERVICES: dict[int, str] = {
    3000: "Node/React",
    3001: "Node/React",
    4000: "Phoenix/Gatsby",
    4200: "Angular",
    5000: "Flask",
    5173: "Vite",
    5174: "Vite",
    5500: "Live Server",
    8000: "Django/Uvicorn",
    8888: "Jupyter",
    9090: "Prometheus",
}


def identify_service(port: int) -> Optional[str]:
    """
    Get the service conventionally bound to a port.

    Well-known assignments take precedence over dev-server conventions.

    Args:
        port: TCP port number

    Returns:
        Service name, or None for unassigned ports
    """
    return PORT_SERVICES.get(port) or DEV_PORT_SERVICES.get(port)
