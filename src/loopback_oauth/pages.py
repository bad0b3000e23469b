"""브라우저에 제공하는 정적 HTML 페이지.

외부 리소스 없이 인라인 스크립트만 사용합니다.
"""

_STYLE = """
    <style>
        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI',
                         Roboto, sans-serif;
            display: flex;
            justify-content: center;
            align-items: center;
            height: 100vh;
            margin: 0;
            background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
            color: white;
        }
        #log {
            text-align: center;
            padding: 40px;
            background: rgba(255,255,255,0.1);
            border-radius: 16px;
        }
    </style>
"""

# 인증 URL이 클 수 있으므로 페이지에 직접 넣지 않고 JSON으로 가져옴
REDIRECT_WITH_AUTH_JSON = """<!doctype html>
<html lang="en">
<head><meta charset="utf-8"><title>Login</title>""" + _STYLE + """</head>
<body>
    <div id="log"></div>
    <script>
    function writemsg(m) {
        var log = document.getElementById('log');
        log.appendChild(document.createTextNode(m.toString()));
        log.appendChild(document.createElement('br'));
    }
    function go() {
        writemsg('Retrieving details of authenticator...');
        fetch('/auth_detail.json').then(function (response) {
            if (!response.ok) {
                throw 'Error during retrieval - ' + response.status + ': ' + response.statusText;
            }
            writemsg('Using details to redirect to authentication page...');
            return response.json();
        }).then(function (auth_url) {
            window.location.href = auth_url;
        }).catch(writemsg);
    }
    go();
    </script>
</body>
</html>
"""

SUCCESS_AFTER_REDIRECT = """<!doctype html>
<html lang="en">
<head><meta charset="utf-8"><title>Login complete</title>""" + _STYLE + """</head>
<body>
    <div id="log">In-browser step of authentication complete, you can now close this page!</div>
</body>
</html>
"""

# 토큰은 URL fragment로 돌아오므로 서버가 직접 받을 수 없음
SAVE_AUTH_AFTER_REDIRECT = """<!doctype html>
<html lang="en">
<head><meta charset="utf-8"><title>Saving login</title>""" + _STYLE + """</head>
<body>
    <div id="log"></div>
    <script>
    function writemsg(m) {
        var log = document.getElementById('log');
        log.appendChild(document.createTextNode(m.toString()));
        log.appendChild(document.createElement('br'));
    }
    function go() {
        writemsg('Saving authentication details...');
        var qs = window.location.hash.slice(1);
        if (qs.length === 0) {
            writemsg('ERROR: No URL hash returned from authorizer');
            return;
        }
        fetch('/save_auth?' + qs, { method: 'POST' }).then(function (response) {
            if (!response.ok) {
                throw 'Error during saving authentication - ' + response.status + ': ' + response.statusText;
            }
            writemsg('Authentication complete, you can now close this page!');
        }).catch(writemsg);
    }
    go();
    </script>
</body>
</html>
"""
