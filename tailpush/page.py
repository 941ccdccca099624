import html
import os
from string import Template
from typing import Optional, Tuple

HOME = Template("""<!DOCTYPE html>
<html lang="en">
    <head>
        <title>tailpush</title>
    </head>
    <body>
        <pre id="fileData">$data</pre>
        <script type="text/javascript">
            (function() {
                var data = document.getElementById("fileData");
                var conn = new WebSocket("ws://$host$path?lastMod=$last_mod");
                conn.onclose = function(evt) {
                    data.textContent += '\\nConnection closed';
                }
                conn.onmessage = function(evt) {
                    data.textContent += evt.data;
                }
            })();
        </script>
    </body>
</html>
""")


def read_file_if_modified(path: str, last_mod: Optional[int] = None) -> Tuple[Optional[bytes], int]:
    """last_mod 为纳秒时间戳；文件不比它新时内容返回 None"""
    mtime = os.stat(path).st_mtime_ns
    if last_mod is not None and mtime <= last_mod:
        return None, last_mod
    with open(path, "rb") as f:
        return f.read(), mtime


def render_home(host: str, path: str, data: str, last_mod: int) -> str:
    return HOME.substitute(host=html.escape(host), path=html.escape(path),
                           data=html.escape(data), last_mod=format(last_mod, "x"))
