"""
Renderers for the files an install writes: server configuration, systemd
unit and Nginx site. Each returns the full file content as a string.
"""
from __future__ import annotations

from .config import Settings


def render_server_config(settings: Settings, admin_password: str) -> str:
    addons = f"{settings.source_dir}/addons,{settings.custom_addons_dir}"
    return f"""[options]
admin_passwd = {admin_password}
db_host = False
db_port = False
db_user = {settings.account}
db_password = False
addons_path = {addons}
logfile = {settings.server_log_dir}/{settings.service_name}.log
log_level = info
xmlrpc_port = {settings.http_port}
"""


def render_service_unit(settings: Settings) -> str:
    return f"""[Unit]
Description=Odoo {settings.series}
Requires=postgresql.service
After=network.target postgresql.service

[Service]
Type=simple
SyslogIdentifier={settings.service_name}
PermissionsStartOnly=true
User={settings.account}
Group={settings.account}
ExecStart={settings.launch_command}
StandardOutput=journal+console
Restart=always

[Install]
WantedBy=multi-user.target
"""


def render_nginx_site(settings: Settings) -> str:
    name = settings.service_name
    return f"""upstream {name} {{
    server 127.0.0.1:{settings.http_port};
}}

upstream odoochat {{
    server 127.0.0.1:{settings.longpolling_port};
}}

server {{
    listen 80;
    server_name {settings.domain};

    access_log /var/log/nginx/{name}.access.log;
    error_log /var/log/nginx/{name}.error.log;

    proxy_buffers 16 64k;
    proxy_buffer_size 128k;

    location / {{
        proxy_pass http://{name};
        proxy_next_upstream error timeout invalid_header http_500 http_502 http_503 http_504;
        proxy_redirect off;

        proxy_set_header Host $host;
        proxy_set_header X-Real-IP $remote_addr;
        proxy_set_header X-Forwarded-For $proxy_add_x_forwarded_for;
        proxy_set_header X-Forwarded-Proto $scheme;
    }}

    location /longpolling {{
        proxy_pass http://odoochat;
    }}

    location ~* /web/static/ {{
        proxy_cache_valid 200 60m;
        proxy_buffering on;
        expires 864000;
        proxy_pass http://{name};
    }}
}}
"""
