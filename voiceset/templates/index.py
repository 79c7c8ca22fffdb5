"""HTML pages served by the app: clip capture and the dataset table."""

from html import escape

_STYLE = """
    <style>
      body { font-family: system-ui, -apple-system, Segoe UI, Roboto, sans-serif; margin: 32px; max-width: 900px; }
      h1 { margin: 0 0 16px; }
      .row { margin: 12px 0; }
      button { padding: 10px 16px; border-radius: 8px; border: 1px solid #e5e7eb; cursor: pointer; }
      #log { white-space: pre-wrap; background:#fafafa; padding:12px; border-radius:8px; min-height: 48px; }
      table { border-collapse: collapse; width: 100%; }
      th, td { text-align: left; padding: 6px 8px; border-bottom: 1px solid #e5e7eb; }
    </style>
"""

index = """
<!doctype html>
<html>
  <head>
    <meta charset="utf-8" />
    <title>voiceset: record or upload a clip</title>
    <meta name="viewport" content="width=device-width, initial-scale=1" />
""" + _STYLE + """
  </head>
  <body>
    <h1>Record or upload a clip</h1>

    <div class="row">
      <button id="recBtn">Start Recording</button>
      <button id="stopBtn" disabled>Stop</button>
      <span id="timer">00:00</span>
    </div>

    <div class="row">
      <input type="file" id="fileInput" accept="audio/*" />
      <button id="uploadBtn">Upload file</button>
    </div>

    <div class="row"><strong>Log</strong><div id="log">-</div></div>
    <div class="row"><a href="/dataset">Browse dataset</a></div>

    <script>
      const log = (msg) => { document.getElementById('log').textContent = msg; };
      let recorder = null, chunks = [], startTime = 0, timerId = null;

      async function send(blob, filename) {
        const fd = new FormData();
        fd.append('file', blob, filename);
        log('Uploading ' + filename + ' ...');
        let res = await fetch('/v1/clips', { method: 'POST', body: fd });
        let body = await res.json();
        if (!res.ok) { log('Upload failed: ' + (body.detail || res.status)); return; }
        const id = body.id;
        log('Uploaded ' + id + ', processing ...');
        res = await fetch('/v1/clips/' + id + '/process', { method: 'POST' });
        body = await res.json();
        if (!res.ok) { log('Processing failed: ' + (body.detail || res.status)); return; }
        log('Processed ' + id + ': ' + body.duration_sec.toFixed(2) + 's, '
            + body.sample_rate + ' Hz, ' + body.channels + ' ch');
      }

      document.getElementById('recBtn').onclick = async () => {
        const stream = await navigator.mediaDevices.getUserMedia({ audio: true });
        recorder = new MediaRecorder(stream);
        chunks = [];
        recorder.ondataavailable = (e) => { if (e.data.size > 0) chunks.push(e.data); };
        recorder.onstop = () => {
          stream.getTracks().forEach((t) => t.stop());
          clearInterval(timerId);
          const blob = new Blob(chunks, { type: recorder.mimeType || 'audio/webm' });
          send(blob, 'recording.webm');
        };
        recorder.start();
        startTime = Date.now();
        timerId = setInterval(() => {
          const s = Math.floor((Date.now() - startTime) / 1000);
          document.getElementById('timer').textContent =
            String(Math.floor(s / 60)).padStart(2, '0') + ':' + String(s % 60).padStart(2, '0');
        }, 250);
        document.getElementById('recBtn').disabled = true;
        document.getElementById('stopBtn').disabled = false;
      };

      document.getElementById('stopBtn').onclick = () => {
        recorder.stop();
        document.getElementById('recBtn').disabled = false;
        document.getElementById('stopBtn').disabled = true;
      };

      document.getElementById('uploadBtn').onclick = () => {
        const f = document.getElementById('fileInput').files[0];
        if (!f) { log('Choose a file first'); return; }
        send(f, f.name);
      };
    </script>
  </body>
</html>
"""


def _cell(value) -> str:
    return "-" if value is None else escape(str(value))


def render_dataset(clips) -> str:
    """Render clip summaries as an HTML table, newest first."""
    rows = []
    for clip in clips:
        duration = None if clip.duration_sec is None else f"{clip.duration_sec:.2f}s"
        rows.append(
            "<tr>"
            f"<td>{_cell(clip.filename)}</td>"
            f"<td>{_cell(clip.status.value)}</td>"
            f"<td>{_cell(duration)}</td>"
            f"<td>{_cell(clip.sample_rate)}</td>"
            f"<td>{_cell(clip.channels)}</td>"
            f"<td>{_cell(clip.created_at.isoformat(timespec='seconds'))}</td>"
            f"<td><code>{_cell(clip.id)}</code></td>"
            "</tr>"
        )
    body = "\n".join(rows) or '<tr><td colspan="7">No clips yet</td></tr>'
    return (
        "<!doctype html>\n<html>\n  <head>\n    <meta charset=\"utf-8\" />\n"
        "    <title>voiceset: dataset</title>\n"
        + _STYLE
        + "  </head>\n  <body>\n    <h1>Dataset</h1>\n"
        '    <div class="row"><a href="/">Record or upload</a></div>\n'
        "    <table>\n"
        "      <tr><th>Filename</th><th>Status</th><th>Duration</th><th>Sample rate</th>"
        "<th>Channels</th><th>Created</th><th>ID</th></tr>\n"
        f"{body}\n"
        "    </table>\n  </body>\n</html>\n"
    )
