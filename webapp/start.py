import sys
import os

# --- اضافه کردن مسیر فعلی به پایتون تا پکیج diabetic_care را پیدا کند ---
if getattr(sys, 'frozen', False):
    BASE_DIR = os.path.dirname(sys.executable)
    sys.path.insert(0, BASE_DIR)
    if hasattr(sys, '_MEIPASS'):
        sys.path.insert(0, sys._MEIPASS)
else:
    BASE_DIR = os.path.abspath(os.path.dirname(__file__))
    sys.path.insert(0, BASE_DIR)
# ------------------------------------------------------------------

from diabetic_care.app import create_app

if __name__ == '__main__':
    app = create_app()

    # پورت 8080 و دسترسی شبکه (اسکن QR از گوشی در همان شبکه)
    app.run(
        debug=False,
        host='0.0.0.0',
        port=int(os.environ.get('PORT', 8080)),
        use_reloader=False,
        threaded=True
    )
