"""Entry point for python -m feedclient"""
import os
import uvicorn


def main():
    port = int(os.getenv("PORT", 8000))
    production = os.getenv("PRODUCTION", "false").lower() == "true"

    if production:
        from feedclient.main import app
        print(f"Starting production server on 0.0.0.0:{port}")
        uvicorn.run(app, host="0.0.0.0", port=port,
                   log_level="info", access_log=False,
                   server_header=False, date_header=False)
    else:
        print(f"Starting development server on 0.0.0.0:{port}")
        uvicorn.run("feedclient.main:app", host="0.0.0.0", port=port,
                   reload=True, reload_dirs=["feedclient"])


if __name__ == "__main__":
    main()
