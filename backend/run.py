import sys
from pathlib import Path

# Ensure we can import the package
current_dir = Path(__file__).parent
sys.path.insert(0, str(current_dir))

def main():
    from investor_interview.config import settings

    print("🚀 Starting Voice Investment Questionnaire API...")
    print(f"🌐 Server: http://localhost:{settings.PORT}")
    print(f"🎤 Interview API: POST http://localhost:{settings.PORT}/api/interview/next")
    print(f"❤️  Health check:  GET  http://localhost:{settings.PORT}/api/interview/health")
    print("=" * 50)
    
    try:
        import uvicorn
        
        uvicorn.run(
            "investor_interview.main:app",
            host=settings.HOST,
            port=settings.PORT,
            reload=settings.RELOAD,
            log_level=settings.LOG_LEVEL.lower()
        )
        
    except ImportError as e:
        print(f"❌ Import error: {e}")
        print("Make sure you've installed the project: pip install -e .")
        sys.exit(1)
    except Exception as e:
        print(f"❌ Error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
